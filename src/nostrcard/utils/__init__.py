"""Utility layer: nostr-sdk transport factories, image fetching and SVG rendering.

Modules:
    transport: Read-only ``nostr_sdk.Client`` factory and relay URL parsing.
    http: Bounded image download into ``data:`` URIs.
    svg: Profile card renderer.
"""
