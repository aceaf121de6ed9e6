import base64
import json

from idsubmit.config.settings import Settings
from idsubmit.submission.session import SessionContext


def _jwt(payload: dict[str, object]) -> str:
    encoded = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")
    return f"eyJhbGciOiJIUzI1NiJ9.{encoded}.signature"


class TestResolveSubjectId:
    def test_stored_id_wins(self) -> None:
        session = SessionContext(subject_id="stored", bearer_token=_jwt({"sub": "from-token"}))
        assert session.resolve_subject_id() == "stored"

    def test_sub_claim(self) -> None:
        assert SessionContext(bearer_token=_jwt({"sub": "u-1"})).resolve_subject_id() == "u-1"

    def test_user_id_claim(self) -> None:
        assert SessionContext(bearer_token=_jwt({"user_id": 77})).resolve_subject_id() == "77"

    def test_id_claim(self) -> None:
        assert SessionContext(bearer_token=_jwt({"id": "u-3"})).resolve_subject_id() == "u-3"

    def test_claim_precedence(self) -> None:
        token = _jwt({"id": "c", "user_id": "b", "sub": "a"})
        assert SessionContext(bearer_token=token).resolve_subject_id() == "a"

    def test_urlsafe_payload_without_padding(self) -> None:
        token = _jwt({"sub": "ü>?~~"})
        assert SessionContext(bearer_token=token).resolve_subject_id() == "ü>?~~"

    def test_blank_stored_id_ignored(self) -> None:
        session = SessionContext(subject_id="  ", bearer_token=_jwt({"sub": "u-1"}))
        assert session.resolve_subject_id() == "u-1"

    def test_nothing_available(self) -> None:
        assert SessionContext().resolve_subject_id() is None

    def test_opaque_token(self) -> None:
        assert SessionContext(bearer_token="opaque").resolve_subject_id() is None

    def test_garbage_payload(self) -> None:
        assert SessionContext(bearer_token="a.!!!notbase64!!!.c").resolve_subject_id() is None

    def test_no_subject_claim(self) -> None:
        assert SessionContext(bearer_token=_jwt({"role": "user"})).resolve_subject_id() is None

    def test_from_settings(self) -> None:
        session = SessionContext.from_settings(Settings(subject_id="s", bearer_token="t"))
        assert session == SessionContext(subject_id="s", bearer_token="t")
