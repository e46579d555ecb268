"""
Visibility rules for snippets. The SQL predicate in storage.py mirrors is_search_candidate.
A requester of None is anonymous and only ever sees public snippets.
"""

from snipsearch.api.schemas import SnippetRecord


def owns(record: SnippetRecord, user_id: int | None) -> bool:
    """True if user_id is the record's owner. Anonymous owns nothing."""
    return user_id is not None and record.user_id == user_id


def is_search_candidate(record: SnippetRecord, user_id: int | None, team_id: int | None) -> bool:
    """Owned, public, or shared with the requester's team with team visibility."""
    if owns(record, user_id):
        return True
    if record.visibility == "public":
        return True
    return team_id is not None and record.team_id == team_id and record.visibility == "team"


def needs_membership_check(record: SnippetRecord, user_id: int | None) -> bool:
    """True when only team membership can decide visibility of record for user_id."""
    return (
        user_id is not None
        and not owns(record, user_id)
        and record.visibility == "team"
        and record.team_id is not None
    )


def can_view(record: SnippetRecord, user_id: int | None, is_team_member: bool = False) -> bool:
    """
    Point-lookup rule: owner, member of the record's team when visibility is team, or public.
    is_team_member is the caller's answer for (record.team_id, user_id).
    """
    if owns(record, user_id):
        return True
    if record.visibility == "public":
        return True
    return user_id is not None and record.visibility == "team" and is_team_member
