import httpx
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from auth.provider import ProviderError, ProviderUnavailableError
from auth.supabase_provider import SupabaseAuthProvider, identity_from_user
from storage.blob_store import InMemoryBlobStore, StorageError, photo_path, progress_percent
from storage.supabase_storage import SupabaseStorage


def _user(**overrides):
    fields = dict(
        id="user-1",
        email="ada@example.com",
        phone="",
        user_metadata={"full_name": "Ada Lovelace", "avatar_url": "https://img/ada.png"},
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


# ================================================================
# Fixtures
# ================================================================

@pytest.fixture
def supabase_client():
    client = MagicMock()
    client.auth = MagicMock()
    for name in ("get_session", "sign_in_with_id_token", "sign_in_with_otp", "verify_otp", "sign_out"):
        setattr(client.auth, name, AsyncMock())
    return client


# ================================================================
# Supabase auth
# ================================================================

def test_identity_from_user_reads_metadata():
    ident = identity_from_user(_user())
    assert ident.id == "user-1"
    assert ident.display_name == "Ada Lovelace"
    assert ident.photo_url == "https://img/ada.png"
    assert ident.phone_number is None


def test_identity_from_user_falls_back_to_name_and_picture():
    ident = identity_from_user(_user(user_metadata={"name": "Ada", "picture": "p.png"}, phone="+15551234567"))
    assert ident.display_name == "Ada"
    assert ident.photo_url == "p.png"
    assert ident.phone_number == "+15551234567"


@pytest.mark.asyncio
async def test_supabase_google_sign_in(supabase_client):
    supabase_client.auth.sign_in_with_id_token.return_value = SimpleNamespace(user=_user())
    provider = SupabaseAuthProvider(supabase_client)

    ident = await provider.sign_in_with_google("id-token")
    assert ident.id == "user-1"
    supabase_client.auth.sign_in_with_id_token.assert_awaited_once_with(
        {"provider": "google", "token": "id-token"}
    )


@pytest.mark.asyncio
async def test_supabase_network_failure_is_unavailable(supabase_client):
    supabase_client.auth.sign_in_with_id_token.side_effect = httpx.ConnectError("refused")
    provider = SupabaseAuthProvider(supabase_client)

    with pytest.raises(ProviderUnavailableError):
        await provider.sign_in_with_google("id-token")


@pytest.mark.asyncio
async def test_supabase_phone_flow(supabase_client):
    supabase_client.auth.verify_otp.return_value = SimpleNamespace(user=_user(phone="+15551234567"))
    provider = SupabaseAuthProvider(supabase_client)

    verification = await provider.request_phone_code("+15551234567", verifier_token="captcha")
    supabase_client.auth.sign_in_with_otp.assert_awaited_once_with(
        {"phone": "+15551234567", "options": {"captcha_token": "captcha"}}
    )

    ident = await provider.confirm_phone_code(verification.verification_id, "123456")
    assert ident.phone_number == "+15551234567"
    supabase_client.auth.verify_otp.assert_awaited_once_with(
        {"phone": "+15551234567", "token": "123456", "type": "sms"}
    )

    # The handle is consumed
    with pytest.raises(ProviderError):
        await provider.confirm_phone_code(verification.verification_id, "123456")


@pytest.mark.asyncio
async def test_supabase_new_code_request_replaces_old_handle(supabase_client):
    supabase_client.auth.verify_otp.return_value = SimpleNamespace(user=_user(phone="+15551234567"))
    provider = SupabaseAuthProvider(supabase_client)

    first = await provider.request_phone_code("+15551234567")
    second = await provider.request_phone_code("+15551234567")
    other = await provider.request_phone_code("+15557654321")
    assert len(provider._verifications) == 2

    with pytest.raises(ProviderError):
        await provider.confirm_phone_code(first.verification_id, "123456")
    ident = await provider.confirm_phone_code(second.verification_id, "123456")
    assert ident.phone_number == "+15551234567"
    assert list(provider._verifications) == [other.verification_id]


@pytest.mark.asyncio
async def test_supabase_delete_identity_needs_admin(supabase_client):
    provider = SupabaseAuthProvider(supabase_client)
    with pytest.raises(ProviderError):
        await provider.delete_identity(identity_from_user(_user()))


@pytest.mark.asyncio
async def test_supabase_delete_identity(supabase_client):
    admin = MagicMock()
    admin.auth.admin.delete_user = AsyncMock()
    provider = SupabaseAuthProvider(supabase_client, admin)

    await provider.delete_identity(identity_from_user(_user()))
    admin.auth.admin.delete_user.assert_awaited_once_with("user-1")
    supabase_client.auth.sign_out.assert_awaited_once()


def test_supabase_auth_listener_translates_sessions(supabase_client):
    subscription = MagicMock()
    supabase_client.auth.on_auth_state_change.return_value = subscription
    provider = SupabaseAuthProvider(supabase_client)
    received = []

    unsubscribe = provider.on_auth_state_change(received.append)
    forward = supabase_client.auth.on_auth_state_change.call_args.args[0]
    forward("SIGNED_IN", SimpleNamespace(user=_user()))
    forward("SIGNED_OUT", None)

    assert received[0].id == "user-1"
    assert received[1] is None
    assert unsubscribe is subscription.unsubscribe


# ================================================================
# Blob storage
# ================================================================

def test_photo_path_sanitizes_filename():
    path = photo_path("u1", "rounds", "my card (1).jpg", timestamp_ms=1700000000000)
    assert path == "users/u1/rounds/1700000000000_my_card_1_.jpg"


def test_progress_percent_empty_upload():
    assert progress_percent(0, 0) == 100.0
    assert progress_percent(5, 10) == 50.0


@pytest.mark.asyncio
async def test_memory_blob_upload_reports_progress():
    store = InMemoryBlobStore(chunk_size=3)
    progress = []
    url = await store.upload("users/u1/rounds/a.jpg", b"1234567", "image/jpeg", on_progress=lambda d, t: progress.append((d, t)))

    assert url == "memory://blobs/users/u1/rounds/a.jpg"
    assert progress == [(3, 7), (6, 7), (7, 7)]
    assert store.get("users/u1/rounds/a.jpg") == b"1234567"

    await store.delete("users/u1/rounds/a.jpg")
    with pytest.raises(StorageError):
        await store.delete("users/u1/rounds/a.jpg")


@pytest.mark.asyncio
async def test_supabase_storage_upload():
    bucket = MagicMock()
    bucket.upload = AsyncMock()
    bucket.get_public_url = AsyncMock(return_value="https://cdn/x.jpg")
    client = MagicMock()
    client.storage.from_.return_value = bucket
    progress = []

    url = await SupabaseStorage(client, "golf-journal").upload(
        "users/u1/rounds/x.jpg", b"abc", "image/jpeg", on_progress=lambda d, t: progress.append(d)
    )

    assert url == "https://cdn/x.jpg"
    assert progress == [0, 3]
    client.storage.from_.assert_called_with("golf-journal")


@pytest.mark.asyncio
async def test_supabase_storage_failure_is_storage_error():
    bucket = MagicMock()
    bucket.upload = AsyncMock(side_effect=RuntimeError("bucket missing"))
    client = MagicMock()
    client.storage.from_.return_value = bucket

    with pytest.raises(StorageError):
        await SupabaseStorage(client, "golf-journal").upload("p", b"abc")
