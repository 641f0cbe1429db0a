"""
Visibility engine: which notes a profile may see, and what it may do.

All functions are pure projections over already-fetched data. The
catalogue passed in is treated as an immutable snapshot ordered newest
first; every function preserves that order.
"""

from typing import Iterable

from app.core.guard import Action, is_permitted
from app.models.profile import Profile
from app.schemas.note import FilterFacets, NoteRead


def visible_notes(profile: Profile | None, catalogue: list[NoteRead]) -> list[NoteRead]:
    """
    Role-based note filter.

      - admin / faculty: the whole catalogue, unchanged
      - student: only notes whose subject is one of their subjects;
        no subjects means no notes
      - anything else (including no profile): nothing
    """
    if profile is None:
        return []

    if profile.role in ("admin", "faculty"):
        return list(catalogue)

    if profile.role == "student":
        enrolled = set(profile.subjects or [])
        if not enrolled:
            return []
        return [note for note in catalogue if note.subject in enrolled]

    return []


def available_filter_facets(faculty_profiles: Iterable[Profile]) -> FilterFacets:
    """
    Sorted unique departments and subjects across faculty profiles,
    used to populate the filter dropdowns.
    """
    departments: set[str] = set()
    subjects: set[str] = set()
    for profile in faculty_profiles:
        if profile.department:
            departments.add(profile.department)
        subjects.update(s for s in (profile.subjects or []) if s)
    return FilterFacets(departments=sorted(departments), subjects=sorted(subjects))


def filter_by_search(notes: list[NoteRead], term: str | None) -> list[NoteRead]:
    """
    Case-insensitive substring match on title, description and
    uploader name. A blank term keeps everything.
    """
    if not term or not term.strip():
        return list(notes)

    needle = term.strip().lower()

    def matches(note: NoteRead) -> bool:
        haystacks = (note.title, note.description, note.uploader_name)
        return any(h and needle in h.lower() for h in haystacks)

    return [note for note in notes if matches(note)]


def apply_filters(
    notes: list[NoteRead],
    term: str | None = None,
    subject: str | None = None,
    department: str | None = None,
) -> list[NoteRead]:
    """
    Search AND subject AND department. Meant to run on the output of
    visible_notes, never instead of it.
    """
    result = filter_by_search(notes, term)
    if subject:
        result = [note for note in result if note.subject == subject]
    if department:
        result = [note for note in result if note.department == department]
    return result


def available_actions(profile: Profile | None) -> frozenset[Action]:
    return frozenset(action for action in Action if is_permitted(profile, action))
