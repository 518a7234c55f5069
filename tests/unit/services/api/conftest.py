"""Shared fixtures and helpers for services.api test package."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from nostrcard.core.gateway import GatewayConfig, GatewayTimeoutsConfig
from nostrcard.services.aggregator import Aggregator
from nostrcard.services.api import Api, ApiConfig


if TYPE_CHECKING:
    from collections.abc import Callable

    from conftest import FakeGateway


@pytest.fixture
def api_config() -> ApiConfig:
    """Minimal API config with short budgets and no image embedding."""
    return ApiConfig(
        host="127.0.0.1",
        port=9999,
        request_timeout=1.0,
        cache_max_age=60,
        embed_images=False,
        gateway=GatewayConfig(
            relays=["wss://default.example.com"],
            timeouts=GatewayTimeoutsConfig(
                profile=0.5, awards=0.4, profile_badges=0.4, definition=0.4
            ),
        ),
    )


@pytest.fixture
def api_gateway(
    api_config: ApiConfig, make_gateway: Callable[..., FakeGateway]
) -> FakeGateway:
    """In-memory gateway sharing the service's gateway configuration."""
    return make_gateway(api_config.gateway)


@pytest.fixture
def api_service(api_config: ApiConfig, api_gateway: FakeGateway) -> Api:
    """Api service whose aggregator answers from ``api_gateway``."""
    service = Api(config=api_config)
    service._gateway = api_gateway
    service._aggregator = Aggregator(api_gateway, api_config.badges)
    return service


@pytest.fixture
def test_client(api_service: Api) -> TestClient:
    """FastAPI TestClient from the Api service."""
    return TestClient(api_service._build_app())
