from datetime import datetime, timedelta, timezone

from app.repositories.profile_repo import ProfileRepository


def test_list_profiles_newest_first_with_paging(db_session, make_profile):
    repo = ProfileRepository()
    older = make_profile("student")
    newer = make_profile("faculty", ["DB"])
    older.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    newer.created_at = older.created_at + timedelta(days=1)
    db_session.add_all([older, newer])
    db_session.commit()

    assert [p.id for p in repo.list_profiles(db_session)] == [newer.id, older.id]
    assert [p.id for p in repo.list_profiles(db_session, skip=1, limit=1)] == [older.id]


def test_list_by_role(db_session, make_profile):
    repo = ProfileRepository()
    faculty = make_profile("faculty", ["Algorithms"])
    make_profile("student", ["Algorithms"])
    make_profile("admin")

    assert [p.id for p in repo.list_by_role(db_session, "faculty")] == [faculty.id]
    assert repo.list_by_role(db_session, "nobody") == []
