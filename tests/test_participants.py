"""Unit tests for aquahub.services.participants."""
import pytest

from aquahub.services.participants import canonical_participants, other_participant, participant_key
from aquahub.utils.errors import NotParticipantError, ValidationError


class TestCanonicalParticipants:

    def test_order_independent(self):
        assert canonical_participants("zoe", "adam") == canonical_participants("adam", "zoe") == ["adam", "zoe"]

    def test_rejects_self_conversation(self):
        with pytest.raises(ValidationError):
            canonical_participants("adam", "adam")

    @pytest.mark.parametrize("bad", ["", "a.b", "$where"])
    def test_rejects_ids_unusable_as_field_names(self, bad):
        with pytest.raises(ValidationError):
            canonical_participants("adam", bad)

    def test_key_joins_sorted_pair(self):
        assert participant_key(canonical_participants("b", "a")) == "a:b"


class TestOtherParticipant:

    def test_returns_the_other_id(self):
        assert other_participant(["adam", "zoe"], "adam") == "zoe"
        assert other_participant(["adam", "zoe"], "zoe") == "adam"

    def test_outsider_rejected(self):
        with pytest.raises(NotParticipantError):
            other_participant(["adam", "zoe"], "eve")
