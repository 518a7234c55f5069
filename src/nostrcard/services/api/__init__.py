"""HTTP API service package.

See Also:
    [Api][nostrcard.services.api.service.Api]: The service class.
    [ApiConfig][nostrcard.services.api.configs.ApiConfig]: Its configuration.
"""

from .cache import RenderCache
from .configs import ApiConfig
from .service import Api


__all__ = ["Api", "ApiConfig", "RenderCache"]
