import pytest

from roomvision.config import Settings

from .fakes import GATEWAY_URL


@pytest.fixture
def settings():
    return Settings(
        ai_gateway_api_key="test-key",
        ai_gateway_url=GATEWAY_URL,
        supabase_url="https://supabase.test",
        supabase_service_role_key="service-key",
    )
