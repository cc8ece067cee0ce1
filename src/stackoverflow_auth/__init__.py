"""stackoverflow-auth - Stack Exchange / StackOverflow OAuth2 strategy.

This package lets a web application sign users in through Stack Exchange:

- `StackOverflowStrategy`: builds the authorize redirect, exchanges the
  authorization code, fetches ``/2.2/me`` and maps it to normalized records
- `create_auth_routes`: Starlette routes for ``/auth/<provider>`` and
  ``/auth/<provider>/callback``
- `resolve_config` / `load_config`: typed configuration from defaults,
  environment, a YAML file and overrides

## Quick Example

```python
from starlette.applications import Starlette
from starlette.responses import JSONResponse

from stackoverflow_auth import StackOverflowStrategy, create_auth_routes, load_config


async def signed_in(request):
    auth = request.state.auth
    return JSONResponse({"uid": auth.uid, "name": auth.info.name})


app = Starlette(
    routes=create_auth_routes(
        [StackOverflowStrategy(stored_config=load_config())],
        on_success=signed_in,
    )
)
```
"""

from .config import StackOverflowConfigModel, load_config, resolve_config
from .contracts import (
    Auth,
    AuthError,
    ConfigError,
    Credentials,
    Extra,
    Failure,
    Info,
    OAuthToken,
    ProviderError,
)
from .oauth import StackOverflowOAuthClient
from .routes import create_auth_routes
from .strategy import AuthFlow, StackExchangeUserModel, StackOverflowStrategy, Strategy

__all__ = [
    # Configuration
    "StackOverflowConfigModel",
    "load_config",
    "resolve_config",
    # Records
    "Auth",
    "AuthError",
    "Credentials",
    "Extra",
    "Failure",
    "Info",
    "OAuthToken",
    # Errors
    "ConfigError",
    "ProviderError",
    # Strategy
    "AuthFlow",
    "StackExchangeUserModel",
    "StackOverflowOAuthClient",
    "StackOverflowStrategy",
    "Strategy",
    "create_auth_routes",
]
