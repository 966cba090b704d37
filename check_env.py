#!/usr/bin/env python3
"""
Environment variable check helper intended to run in a deployment
environment. Prints the status of the provider settings and flags a
selected provider whose API key is missing.
"""
from voltsage.core.config import settings, SUPPORTED_PROVIDERS

# provider id -> (key setting name, key value, key required)
PROVIDER_KEYS = {
    "nrel": ("NREL_API_KEY", settings.NREL_API_KEY, False),
    "ocm": ("OCM_API_KEY", settings.OCM_API_KEY, True),
    "evchargers": ("EV_CHARGER_API_KEY", settings.EV_CHARGER_API_KEY, True),
    "generative": ("LLM_API_KEY", settings.LLM_API_KEY, True),
}


def mask(value) -> str:
    value = str(value)
    return f"{value[:6]}..." if len(value) > 6 else "***"


def check_environment() -> bool:
    """Validate provider configuration and print a summary."""
    print("Starting environment variable check")

    print("\nProvider keys:")
    for provider_id, (var_name, var_value, _) in PROVIDER_KEYS.items():
        print(f"  {var_name}: {mask(var_value) if var_value else 'NOT SET'}")

    provider = settings.DATA_PROVIDER
    print(f"\nSelected provider: {provider}")
    ok = True
    if provider not in SUPPORTED_PROVIDERS:
        print(f"  Unknown provider, expected one of: {', '.join(SUPPORTED_PROVIDERS)}")
        ok = False
    elif provider in PROVIDER_KEYS:
        var_name, var_value, required = PROVIDER_KEYS[provider]
        if required and not var_value:
            print(f"  {var_name} is required for '{provider}' but is not set")
            ok = False
        elif not var_value:
            print(f"  {var_name} not set, the public DEMO_KEY will be used (rate limited)")

    print("\nOther settings:")
    print(f"  ENVIRONMENT: {settings.ENVIRONMENT}")
    print(f"  GEOCODER_BASE_URL: {settings.GEOCODER_BASE_URL}")
    print(f"  SEARCH_RADIUS_MILES: {settings.SEARCH_RADIUS_MILES}")
    print(f"  FAVORITES_BACKEND: {settings.FAVORITES_BACKEND}")
    if settings.FAVORITES_BACKEND == "redis":
        print(f"  REDIS: {settings.REDIS_HOST}:{settings.REDIS_PORT}")

    print("\nEnvironment OK" if ok else "\nEnvironment has problems")
    return ok


if __name__ == "__main__":
    raise SystemExit(0 if check_environment() else 1)
