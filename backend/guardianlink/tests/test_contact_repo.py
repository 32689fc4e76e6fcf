# backend/guardianlink/tests/test_contact_repo.py
import pytest
from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import ServerSelectionTimeoutError

from guardianlink.core.errors import ContactNotFound, InvalidArgument, LimitExceeded, StoreError
from guardianlink.models.contact import ContactCreate, ContactRepo, ContactUpdate

pytestmark = pytest.mark.asyncio

NAMES = ["Pedro", "Ana", "Mom", "Zoe", "Carlos", "Beto"]


def _c(name: str, number: str = "+15551234567") -> ContactCreate:
    return ContactCreate(name=name, whatsappNumber=number)


async def _fill(repo: ContactRepo, user_id: str, names=NAMES):
    return [await repo.create(user_id, _c(n, f"+1555123{i:04d}")) for i, n in enumerate(names)]


async def test_create_assigns_id_and_timestamp(db):
    repo = ContactRepo(db)
    c = await repo.create("u1", _c("Mom"))
    assert ObjectId.is_valid(c.id)
    assert c.name == "Mom"
    assert c.whatsapp_number == "+15551234567"
    assert c.created_at is not None
    assert c.updated_at is None


async def test_list_sorted_by_name_and_capped(db):
    repo = ContactRepo(db)
    await _fill(repo, "u1")
    # aunque la colección tenga de más (carrera vieja), list nunca pasa de 6
    db["contacts"].insert_one({"user_id": "u1", "name": "Aaron", "whatsappNumber": "+15550000000"})

    rows = await repo.list_contacts("u1")
    assert len(rows) == 6
    assert [r.name for r in rows] == sorted(NAMES + ["Aaron"])[:6]


async def test_list_empty_for_new_user(db):
    assert await ContactRepo(db).list_contacts("nadie") == []


async def test_seventh_contact_rejected_and_store_unchanged(db):
    repo = ContactRepo(db)
    await _fill(repo, "u1")
    before = list(db["contacts"].find({"user_id": "u1"}))

    with pytest.raises(LimitExceeded):
        await repo.create("u1", _c("Septimo"))

    after = list(db["contacts"].find({"user_id": "u1"}))
    assert after == before


async def test_limit_is_per_user(db):
    repo = ContactRepo(db)
    await _fill(repo, "u1")
    c = await repo.create("u2", _c("Mom"))
    assert c.name == "Mom"


class _StaleCount:
    """Simula otra pestaña que contó antes de que la primera insertara."""

    def __init__(self, col, stale: int):
        self._col = col
        self._stale = stale

    def count_documents(self, *args, **kwargs):
        return self._stale

    def __getattr__(self, name):
        return getattr(self._col, name)


async def test_concurrent_insert_over_cap_is_rolled_back(db):
    repo = ContactRepo(db)
    await _fill(repo, "u1")
    repo.col = _StaleCount(repo.col, 5)

    with pytest.raises(LimitExceeded):
        await repo.create("u1", _c("Carrera"))
    assert db["contacts"].count_documents({"user_id": "u1"}) == 6
    assert db["contacts"].find_one({"name": "Carrera"}) is None


async def test_update_partial_keeps_other_fields(db):
    repo = ContactRepo(db)
    c = await repo.create("u1", _c("Mom", "+15551234567"))

    updated = await repo.update("u1", c.id, ContactUpdate(name="X"))
    assert updated.name == "X"
    assert updated.whatsapp_number == "+15551234567"
    assert updated.updated_at is not None

    updated = await repo.update("u1", c.id, ContactUpdate(whatsappNumber="+5215512345678"))
    assert updated.name == "X"
    assert updated.whatsapp_number == "+5215512345678"


async def test_update_requires_some_field(db):
    repo = ContactRepo(db)
    c = await repo.create("u1", _c("Mom"))
    with pytest.raises(InvalidArgument):
        await repo.update("u1", c.id, ContactUpdate())


async def test_update_unknown_contact_reports_not_found(db):
    repo = ContactRepo(db)
    with pytest.raises(ContactNotFound):
        await repo.update("u1", str(ObjectId()), ContactUpdate(name="X"))
    with pytest.raises(ContactNotFound):
        await repo.update("u1", "no-es-un-id", ContactUpdate(name="X"))


async def test_delete_is_idempotent(db):
    repo = ContactRepo(db)
    c = await repo.create("u1", _c("Mom"))
    await repo.delete("u1", c.id)
    await repo.delete("u1", c.id)
    await repo.delete("u1", str(ObjectId()))
    await repo.delete("u1", "no-es-un-id")
    assert await repo.list_contacts("u1") == []


async def test_users_cannot_touch_each_other(db):
    repo = ContactRepo(db)
    mine = await repo.create("u1", _c("Mom"))

    assert await repo.list_contacts("u2") == []
    with pytest.raises(ContactNotFound):
        await repo.update("u2", mine.id, ContactUpdate(name="Hackeado"))
    await repo.delete("u2", mine.id)

    rows = await repo.list_contacts("u1")
    assert [r.name for r in rows] == ["Mom"]


@pytest.mark.parametrize("user_id", ["", "   ", None])
async def test_operations_require_user_id(db, user_id):
    repo = ContactRepo(db)
    with pytest.raises(InvalidArgument):
        await repo.list_contacts(user_id)
    with pytest.raises(InvalidArgument):
        await repo.create(user_id, _c("Mom"))
    with pytest.raises(InvalidArgument):
        await repo.update(user_id, str(ObjectId()), ContactUpdate(name="X"))
    with pytest.raises(InvalidArgument):
        await repo.delete(user_id, str(ObjectId()))


class _DownCollection:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise ServerSelectionTimeoutError("mongo caído")
        return _fail


async def test_read_failure_degrades_or_raises(db):
    repo = ContactRepo(db)
    repo.col = _DownCollection()

    assert await repo.list_contacts("u1", degrade=True) == []
    with pytest.raises(StoreError):
        await repo.list_contacts("u1")
    with pytest.raises(StoreError):
        await repo.create("u1", _c("Mom"))


@pytest.mark.parametrize("payload", [
    {"name": "", "whatsappNumber": "+15551234567"},
    {"name": "x" * 51, "whatsappNumber": "+15551234567"},
    {"name": "Mom", "whatsappNumber": "12345"},
    {"name": "Mom", "whatsappNumber": "+0123456789"},
    {"name": "Mom", "whatsappNumber": "+1 (555) 123-4567"},
    {"name": "Mom", "whatsappNumber": "+1234567890123456"},
])
async def test_contact_input_validation(payload):
    with pytest.raises(ValidationError):
        ContactCreate(**payload)
