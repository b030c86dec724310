import pytest, respx
from bpjs_adapter.config import SatuSehatConfig
from bpjs_adapter.errors import TransportError
from bpjs_adapter.satusehat import SatuSehatClient, TokenCache

BASE = "https://api-satusehat-stg.dto.kemkes.go.id"
CONFIG = SatuSehatConfig(client_id="cid", client_secret="csecret", base_url=BASE)
NOW = 1_710_460_800.0
TOKEN_RESP = {"access_token": "fresh-token", "expires_in": "3599", "token_type": "BearerToken"}


def test_token_cache_freshness():
    cache = TokenCache(token="t", expires_at=NOW + 61)
    assert cache.is_fresh(NOW)
    assert not cache.is_fresh(NOW + 1)
    assert not TokenCache().is_fresh(NOW)
    assert not TokenCache(token="t", expires_at=NOW + 10, skew=0).is_fresh(NOW + 10)


@pytest.mark.asyncio
async def test_fresh_token_is_reused():
    client = SatuSehatClient(CONFIG, cache=TokenCache("cached", NOW + 3600), clock=lambda: NOW)
    # no token route: any token request would be unmatched
    with respx.mock(base_url=BASE):
        assert await client.get_valid_token() == "cached"


@pytest.mark.asyncio
@pytest.mark.parametrize("cache", [TokenCache(), TokenCache("stale", NOW + 30), TokenCache("old", NOW - 5)])
async def test_token_refreshed_when_absent_or_near_expiry(cache):
    client = SatuSehatClient(CONFIG, cache=cache, clock=lambda: NOW)
    with respx.mock(base_url=BASE) as m:
        route = m.post("/oauth2/v1/accesstoken").respond(200, json=TOKEN_RESP)

        token = await client.get_valid_token()

    assert token == "fresh-token"
    assert cache.expires_at == NOW + 3599
    request = route.calls.last.request
    assert request.url.params["grant_type"] == "client_credentials"
    assert b"client_id=cid" in request.content


@pytest.mark.asyncio
async def test_token_error_is_transport_error():
    client = SatuSehatClient(CONFIG, clock=lambda: NOW)
    with respx.mock(base_url=BASE) as m:
        m.post("/oauth2/v1/accesstoken").respond(401, json={"error": "invalid_client"})

        with pytest.raises(TransportError) as exc:
            await client.get_valid_token()

    assert exc.value.http_status == 401


@pytest.mark.asyncio
async def test_create_patient_uses_bearer_token():
    client = SatuSehatClient(CONFIG, clock=lambda: NOW)
    patient = {"resourceType": "Patient", "name": [{"text": "Budi Santoso"}]}
    with respx.mock(base_url=BASE) as m:
        token = m.post("/oauth2/v1/accesstoken").respond(200, json=TOKEN_RESP)
        create = m.post("/fhir-r4/v1/Patient").respond(201, json={"resourceType": "Patient", "id": "P001"})

        created = await client.create_patient(patient)
        await client.create_patient(patient)

    assert created["id"] == "P001"
    assert token.call_count == 1
    assert create.calls.last.request.headers["Authorization"] == "Bearer fresh-token"
