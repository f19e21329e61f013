from typing import List, Sequence

from aquahub.utils.errors import NotParticipantError, ValidationError


def _check_user_id(user_id: str) -> None:
    # ids become field names in unread_counts, so dots and a leading $ are not allowed
    if not user_id or "." in user_id or user_id.startswith("$"):
        raise ValidationError(f"Invalid user id: {user_id!r}")


def canonical_participants(user_a: str, user_b: str) -> List[str]:
    """Sorted pair locating the conversation between two users, whoever starts it."""
    _check_user_id(user_a)
    _check_user_id(user_b)
    if user_a == user_b:
        raise ValidationError("Cannot start a conversation with yourself")
    return sorted([user_a, user_b])


def participant_key(participant_ids: Sequence[str]) -> str:
    return ":".join(participant_ids)


def other_participant(participant_ids: Sequence[str], user_id: str) -> str:
    if user_id not in participant_ids:
        raise NotParticipantError("Not a participant of this conversation")
    for pid in participant_ids:
        if pid != user_id:
            return pid
    raise NotParticipantError("Conversation has no other participant")
