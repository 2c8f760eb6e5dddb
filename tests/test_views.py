import pytest
from datetime import date

from auth.memory_provider import InMemoryAuthProvider
from database.db_manager import DatabaseManager
from database.documents import InMemoryDocumentStore
from database.exceptions import DatabaseError
from models import Course, Identity, Profile
from session.errors import (
    AccountDeletionError,
    BackendUnavailableError,
    NotAuthenticatedError,
    ValidationError,
)
from session.notifications import NotificationChannel, NotificationKind
from session.state import SessionStatus
from session.store import SessionStore
from storage.blob_store import InMemoryBlobStore
from views import (
    AddRoundView,
    CourseForm,
    DashboardView,
    HistoryView,
    PhotoUpload,
    ProfileView,
    RoundForm,
    ViewContext,
)

ADA = Identity(id="u-ada", display_name="Ada Lovelace", email="ada@example.com")


class BrokenStore(InMemoryDocumentStore):
    """Queries fail; everything else works."""

    async def query(self, collection, **kwargs):
        raise DatabaseError("backend offline")


# ================================================================
# Fixtures
# ================================================================

async def _ready_context(store=None, storage=None):
    auth = InMemoryAuthProvider()
    db = DatabaseManager(store or InMemoryDocumentStore())
    session = SessionStore(auth, db)
    await session.start()
    auth.set_current_user(ADA)
    await session.settle()
    ctx = ViewContext(
        session=session,
        db=db,
        notifications=NotificationChannel(),
        storage=storage if storage is not None else InMemoryBlobStore(chunk_size=4),
    )
    return ctx, auth


def _messages(ctx, kind=None):
    return [n.message for n in ctx.notifications.active() if kind is None or n.kind is kind]


async def _add_course(ctx, name="Pebble Beach", **fields):
    view = AddRoundView(ctx)
    return await view.add_course(CourseForm(name=name, **fields))


# ================================================================
# Mount / unmount
# ================================================================

@pytest.mark.asyncio
async def test_mount_failure_publishes_error_without_raising():
    ctx, _ = await _ready_context(store=BrokenStore())
    view = DashboardView(ctx)

    await view.mount()

    assert view.courses == []
    assert view.loading is False
    assert _messages(ctx, NotificationKind.ERROR) == ["Error loading dashboard"]


@pytest.mark.asyncio
async def test_results_after_unmount_are_dropped():
    ctx, _ = await _ready_context()
    view = DashboardView(ctx)
    view.unmount()
    assert view._apply(courses=["x"]) is False
    assert view.courses == []


@pytest.mark.asyncio
async def test_signed_out_view_raises_not_authenticated():
    ctx, auth = await _ready_context()
    auth.set_current_user(None)

    with pytest.raises(NotAuthenticatedError):
        await _add_course(ctx)


# ================================================================
# Dashboard
# ================================================================

@pytest.mark.asyncio
async def test_dashboard_render():
    ctx, _ = await _ready_context()
    for i in range(7):
        await _add_course(ctx, name=f"Course {i}", latitude=10 + i, longitude=20)

    view = DashboardView(ctx)
    await view.mount()
    payload = view.render()

    assert payload["greeting"] == "Welcome Back, Ada!"
    assert len(payload["recent_courses"]) == 5
    assert len(payload["markers"]) == 7
    assert payload["tiles"]["total_courses"] == 7   # incremented per added course
    assert payload["tiles"]["total_rounds"] == 0


# ================================================================
# Add round
# ================================================================

@pytest.mark.asyncio
async def test_add_course_increments_profile_counter():
    ctx, _ = await _ready_context()
    course = await _add_course(ctx, name="Links", location="Scotland")

    profile = await ctx.db.profiles.get_profile(ADA.id)
    assert profile.total_courses == 1
    assert course.added_by_id == ADA.id
    assert "Added Links" in _messages(ctx, NotificationKind.SUCCESS)


@pytest.mark.asyncio
async def test_add_course_requires_name():
    ctx, _ = await _ready_context()
    with pytest.raises(ValidationError):
        await _add_course(ctx, name="  ")


@pytest.mark.asyncio
async def test_course_search_and_select():
    ctx, _ = await _ready_context()
    await _add_course(ctx, name="Torrey Pines", location="San Diego")
    await _add_course(ctx, name="Pebble Beach", location="Monterey")

    view = AddRoundView(ctx)
    await view.mount()
    assert await view.search_courses("t") == []
    results = await view.search_courses("TORR")
    assert [c.name for c in results] == ["Torrey Pines"]

    course = await view.select_course(results[0].id)
    assert view.selected_course == course

    with pytest.raises(ValidationError):
        await view.select_course("missing")


@pytest.mark.asyncio
async def test_submit_without_course_is_validation_error():
    ctx, _ = await _ready_context()
    view = AddRoundView(ctx)
    await view.mount()

    with pytest.raises(ValidationError):
        await view.submit(RoundForm(date=date(2024, 5, 1), score=85))
    assert _messages(ctx, NotificationKind.WARNING) == ["Please select a course"]
    assert await ctx.db.rounds.list_rounds(ADA.id) == []


@pytest.mark.asyncio
async def test_submit_without_date_is_validation_error():
    ctx, _ = await _ready_context()
    course = await _add_course(ctx)
    view = AddRoundView(ctx, preselected_course_id=course.id)
    await view.mount()

    with pytest.raises(ValidationError):
        await view.submit(RoundForm(score=85))


@pytest.mark.asyncio
async def test_submit_round_updates_counters():
    ctx, _ = await _ready_context()
    course = await _add_course(ctx)
    progress = []
    view = AddRoundView(ctx, preselected_course_id=course.id, on_progress=progress.append)
    await view.mount()
    assert view.selected_course.id == course.id

    created = await view.submit(
        RoundForm(date=date(2024, 5, 1), score=85, par=72, played_with="Bob, Cy ,"),
        photos=[PhotoUpload("card 1.jpg", b"12345678"), PhotoUpload("card2.jpg", b"1234")],
    )

    assert created.id
    assert created.played_with == ["Bob", "Cy"]
    assert len(created.photo_urls) == 2
    assert created.photo_urls[0].startswith(f"memory://blobs/users/{ADA.id}/rounds/")
    assert progress[-1] == 100.0
    assert progress == sorted(progress)

    played = await ctx.db.courses.get_course(ADA.id, course.id)
    assert played.times_played == 1
    assert played.last_played == date(2024, 5, 1)

    profile = ctx.session.profile
    assert profile.total_rounds == 1
    assert profile.last_played_date == date(2024, 5, 1)
    assert profile.most_played_course_id == course.id
    assert "Round added successfully!" in _messages(ctx, NotificationKind.SUCCESS)


@pytest.mark.asyncio
async def test_most_played_course_moves_when_overtaken():
    ctx, _ = await _ready_context()
    first = await _add_course(ctx, name="First")
    second = await _add_course(ctx, name="Second")

    async def play(course):
        view = AddRoundView(ctx, preselected_course_id=course.id)
        await view.mount()
        await view.submit(RoundForm(date=date(2024, 5, 1)))

    await play(first)
    await play(second)
    assert ctx.session.profile.most_played_course_id == first.id

    await play(second)
    assert ctx.session.profile.most_played_course_id == second.id
    assert ctx.session.profile.total_rounds == 3


@pytest.mark.asyncio
async def test_submit_failure_notifies_and_raises():
    ctx, _ = await _ready_context()
    course = await _add_course(ctx)
    view = AddRoundView(ctx, preselected_course_id=course.id)
    await view.mount()
    await ctx.db.courses.delete_course(ADA.id, course.id)

    with pytest.raises(ValidationError):
        await view.submit(RoundForm(date=date(2024, 5, 1)))
    assert "Failed to add round" in _messages(ctx, NotificationKind.ERROR)


@pytest.mark.asyncio
async def test_photos_without_storage_is_backend_unavailable():
    ctx, _ = await _ready_context()
    ctx.storage = None
    course = await _add_course(ctx)
    view = AddRoundView(ctx, preselected_course_id=course.id)
    await view.mount()

    with pytest.raises(BackendUnavailableError):
        await view.submit(RoundForm(date=date(2024, 5, 1)), photos=[PhotoUpload("a.jpg", b"1")])


# ================================================================
# History
# ================================================================

async def _history_fixture():
    ctx, _ = await _ready_context()
    links = await _add_course(ctx, name="Links", location="Scotland")
    pines = await _add_course(ctx, name="Torrey Pines", location="San Diego")
    for course, played in ((links, date(2023, 7, 1)), (pines, date(2024, 2, 3)), (pines, date(2024, 9, 9))):
        view = AddRoundView(ctx, preselected_course_id=course.id)
        await view.mount()
        await view.submit(RoundForm(date=played, score=80))
    history = HistoryView(ctx)
    await history.mount()
    return ctx, history, links, pines


@pytest.mark.asyncio
async def test_history_filters_compose():
    ctx, history, links, pines = await _history_fixture()

    assert history.years == ["2024", "2023"]
    assert [r.date for r in history.rounds] == [date(2024, 9, 9), date(2024, 2, 3), date(2023, 7, 1)]

    history.set_filters(year="2024")
    assert len(history.filtered_rounds) == 2
    history.set_filters(course_id=links.id)
    assert history.filtered_rounds == []
    history.clear_filters()
    history.set_filters(search="scot")
    assert [c.name for c in history.filtered_courses] == ["Links"]


@pytest.mark.asyncio
async def test_history_view_mode():
    ctx, history, _, _ = await _history_fixture()
    history.set_filters(view_mode="map")
    assert history.render()["view_mode"] == "map"
    with pytest.raises(ValidationError):
        history.set_filters(view_mode="grid")


@pytest.mark.asyncio
async def test_history_edit_course():
    ctx, history, links, _ = await _history_fixture()

    updated = await history.edit_course(links.id, name="The Links", rating=4.5)
    assert updated.name == "The Links"
    assert any(c.name == "The Links" for c in history.courses)

    with pytest.raises(ValidationError):
        await history.edit_course(links.id, rating=7)
    with pytest.raises(ValidationError):
        await history.edit_course("missing", name="X")


@pytest.mark.asyncio
async def test_history_delete_course_decrements_counter():
    ctx, history, links, _ = await _history_fixture()
    assert ctx.session.profile.total_courses == 2

    await history.delete_course(links.id)

    assert all(c.id != links.id for c in history.courses)
    assert ctx.session.profile.total_courses == 1
    assert "Course deleted" in _messages(ctx, NotificationKind.SUCCESS)


# ================================================================
# Profile
# ================================================================

@pytest.mark.asyncio
async def test_profile_form_and_save():
    ctx, _ = await _ready_context()
    view = ProfileView(ctx)
    await view.mount()
    assert view.form["display_name"] == "Ada Lovelace"
    assert view.form["handicap"] == ""

    await view.save({"handicap": 12.4, "home_course_name": "Links"})
    assert view.form["handicap"] == "12.4"
    assert ctx.session.profile.display_name == "Ada Lovelace"
    assert "Profile updated successfully" in _messages(ctx, NotificationKind.SUCCESS)


@pytest.mark.asyncio
async def test_profile_save_invalid_publishes_error():
    ctx, _ = await _ready_context()
    view = ProfileView(ctx)
    await view.mount()

    with pytest.raises(ValidationError):
        await view.save({"handicap": 100})
    assert "Failed to update profile" in _messages(ctx, NotificationKind.ERROR)


@pytest.mark.asyncio
async def test_profile_photo_upload():
    storage = InMemoryBlobStore(chunk_size=2)
    ctx, _ = await _ready_context(storage=storage)
    progress = []
    view = ProfileView(ctx, on_progress=progress.append)

    url = await view.upload_photo("me.png", b"abcdef", "image/png")

    assert ctx.session.profile.photo_url == url
    assert progress == pytest.approx([100 / 3, 200 / 3, 100.0])
    path = url.removeprefix("memory://blobs/")
    assert path.startswith(f"users/{ADA.id}/profile/")
    assert storage.get(path) == b"abcdef"


@pytest.mark.asyncio
async def test_delete_account_requires_confirmation():
    ctx, _ = await _ready_context()
    view = ProfileView(ctx)
    assert await view.delete_account(confirmed=False) is False
    assert ctx.session.status is SessionStatus.READY


@pytest.mark.asyncio
async def test_delete_account():
    ctx, _ = await _ready_context()
    await _add_course(ctx)
    view = ProfileView(ctx)

    assert await view.delete_account(confirmed=True) is True
    assert ctx.session.status is SessionStatus.ANONYMOUS
    assert await ctx.db.profiles.get_profile(ADA.id) is None


@pytest.mark.asyncio
async def test_delete_account_partial_failure_message():
    class NoCourseDelete(InMemoryDocumentStore):
        async def delete_collection(self, collection):
            if collection.endswith("coursesPlayed"):
                raise DatabaseError("offline")
            return await super().delete_collection(collection)

    ctx, _ = await _ready_context(store=NoCourseDelete())
    view = ProfileView(ctx)

    with pytest.raises(AccountDeletionError):
        await view.delete_account(confirmed=True)
    assert _messages(ctx, NotificationKind.ERROR) == [
        "Account deletion did not finish. Some of your data may remain."
    ]
    assert isinstance(await ctx.db.profiles.get_profile(ADA.id), Profile)
