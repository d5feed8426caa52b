# tests/test_tokens.py
from datetime import datetime, timedelta, timezone

from helpdesk.auth import tokens
from helpdesk.auth.models import LifecycleToken, TokenPurpose
from helpdesk.auth.tokens import TokenCheck


def test_issue_replaces_previous_code(db, make_user):
    user_id = make_user("carol")
    tokens.issue(db, TokenPurpose.RESET_PASSWORD, user_id, timedelta(minutes=60))
    second = tokens.issue(db, TokenPurpose.RESET_PASSWORD, user_id, timedelta(minutes=60))
    db.commit()

    stored = db.query(LifecycleToken).filter(LifecycleToken.user_id == user_id).all()
    assert len(stored) == 1
    assert stored[0].id == second.id
    assert len(second.code) == 6 and second.code.isdigit()


def test_code_is_single_use(db, make_user):
    user_id = make_user("carol")
    token = tokens.issue(db, TokenPurpose.RESET_PASSWORD, user_id, timedelta(minutes=60))
    db.commit()

    assert tokens.take_if_valid(db, TokenPurpose.RESET_PASSWORD, user_id, token.code) is TokenCheck.VALID
    assert tokens.take_if_valid(db, TokenPurpose.RESET_PASSWORD, user_id, token.code) is TokenCheck.INVALID


def test_wrong_code_keeps_stored_one(db, make_user):
    user_id = make_user("carol")
    token = tokens.issue(db, TokenPurpose.VERIFY_EMAIL, user_id, timedelta(hours=24))
    db.commit()
    wrong = "000000" if token.code != "000000" else "111111"

    assert tokens.take_if_valid(db, TokenPurpose.VERIFY_EMAIL, user_id, wrong) is TokenCheck.INVALID
    assert tokens.take_if_valid(db, TokenPurpose.VERIFY_EMAIL, user_id, token.code) is TokenCheck.VALID


def test_purposes_do_not_mix(db, make_user):
    user_id = make_user("carol")
    token = tokens.issue(db, TokenPurpose.VERIFY_EMAIL, user_id, timedelta(hours=24))
    db.commit()
    assert tokens.take_if_valid(db, TokenPurpose.RESET_PASSWORD, user_id, token.code) is TokenCheck.INVALID


def test_expired_code_is_reported_and_consumed(db, make_user):
    user_id = make_user("carol")
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = tokens.issue(db, TokenPurpose.RESET_PASSWORD, user_id, timedelta(minutes=60), now=issued)
    db.commit()

    assert tokens.take_if_valid(db, TokenPurpose.RESET_PASSWORD, user_id, token.code) is TokenCheck.EXPIRED
    assert tokens.take_if_valid(db, TokenPurpose.RESET_PASSWORD, user_id, token.code) is TokenCheck.INVALID


def test_expiry_can_be_ignored(db, make_user):
    user_id = make_user("carol")
    issued = datetime.now(timezone.utc) - timedelta(days=3)
    token = tokens.issue(db, TokenPurpose.VERIFY_EMAIL, user_id, timedelta(hours=24), now=issued)
    db.commit()

    result = tokens.take_if_valid(db, TokenPurpose.VERIFY_EMAIL, user_id, token.code, check_expiry=False)
    assert result is TokenCheck.VALID
