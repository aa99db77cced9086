import pytest

from apps.security_svc.services.recovery_verifier import ACTION_KNOWLEDGE_RESET
from apps.security_svc.utils.question_catalog import SECURITY_QUESTIONS
from libs.app.errors import AuthError, ErrorCode, PersistenceError, RateError, ReuseError, ValidationError
from libs.domain.dto.security import SecurityAnswer
from tests.fakes import STRONG_PASSWORD

EMAIL = "u1@example.com"

ANSWERS = {
    "q1": "Maple Street 42",
    "q2": "Rex, in March",
    "q3": "Mrs. Smith, grade 3",
}


def answers(mapping):
    return [SecurityAnswer(question_id=k, answer=v) for k, v in mapping.items()]


@pytest.fixture
def verifier(container):
    return container.recovery_verifier


@pytest.fixture
async def user_with_questions(verifier, auth_provider):
    auth_provider.add_user("u1", EMAIL, "0ld!Password")
    await verifier.setup_security_questions("u1", answers(ANSWERS))
    return "u1"


@pytest.mark.anyio
async def test_answers_are_stored_hashed(user_with_questions, store):
    profile = store.profiles["u1"]
    assert profile.account_recovery_enabled is True
    assert [q.question_id for q in profile.security_questions] == ["q1", "q2", "q3"]
    for q in profile.security_questions:
        assert q.hashed_answer.startswith("$2")
        assert q.hashed_answer not in ANSWERS.values()


@pytest.mark.anyio
async def test_all_correct_answers_verify(verifier, user_with_questions):
    assert await verifier.verify_security_questions(EMAIL, answers(ANSWERS)) is True


@pytest.mark.anyio
async def test_answers_compared_ignoring_case_and_whitespace(verifier, user_with_questions):
    submitted = {"q1": "  MAPLE STREET 42 ", "q2": "rex, IN march"}
    assert await verifier.verify_security_questions(EMAIL.upper(), answers(submitted)) is True


@pytest.mark.anyio
async def test_wrong_answers_fail(verifier, user_with_questions):
    submitted = {"q1": "Oak Avenue 1", "q2": "Tom", "q3": "Mr. Brown"}
    assert await verifier.verify_security_questions(EMAIL, answers(submitted)) is False


@pytest.mark.anyio
async def test_two_of_three_is_enough(verifier, user_with_questions):
    submitted = {"q1": ANSWERS["q1"], "q2": "wrong", "q3": ANSWERS["q3"]}
    assert await verifier.verify_security_questions(EMAIL, answers(submitted)) is True


@pytest.mark.anyio
async def test_same_question_counts_once(verifier, user_with_questions):
    submitted = [
        SecurityAnswer(question_id="q1", answer=ANSWERS["q1"]),
        SecurityAnswer(question_id="q1", answer=ANSWERS["q1"]),
        SecurityAnswer(question_id="q2", answer="wrong"),
    ]
    assert await verifier.verify_security_questions(EMAIL, submitted) is False


@pytest.mark.anyio
async def test_too_few_answers_is_a_validation_error(verifier, user_with_questions):
    with pytest.raises(ValidationError):
        await verifier.verify_security_questions(EMAIL, answers({"q1": ANSWERS["q1"]}))


@pytest.mark.anyio
async def test_unknown_user_or_no_questions_fails(verifier, auth_provider):
    assert await verifier.verify_security_questions("ghost@example.com", answers(ANSWERS)) is False
    auth_provider.add_user("u2", "u2@example.com", "0ld!Password")
    assert await verifier.verify_security_questions("u2@example.com", answers(ANSWERS)) is False


@pytest.mark.anyio
async def test_setup_validation_lists_problems(verifier):
    with pytest.raises(ValidationError) as exc:
        await verifier.setup_security_questions(
            "u1",
            [
                SecurityAnswer(question_id="q1", answer="abcd"),
                SecurityAnswer(question_id="q1", answer="long enough"),
            ],
        )
    errors = exc.value.errors
    assert len(errors) == 3
    assert any("at least 3" in e for e in errors)
    assert any("Duplicate" in e for e in errors)
    assert any("too short" in e for e in errors)


@pytest.mark.anyio
async def test_setup_rejects_too_many_questions(verifier):
    many = {f"q{i}": "long enough" for i in range(6)}
    with pytest.raises(ValidationError):
        await verifier.setup_security_questions("u1", answers(many))


@pytest.mark.anyio
async def test_setup_replaces_questions_and_clears_password_history(verifier, container, store, auth_provider):
    identity = auth_provider.add_user("u1", EMAIL, "0ld!Password")
    await container.password_lifecycle.change_password(identity, "0ld!Password", STRONG_PASSWORD)
    assert store.profiles["u1"].password_hashes

    await verifier.setup_security_questions("u1", answers(ANSWERS))
    await verifier.setup_security_questions(
        "u1", answers({"a1": "answer one", "a2": "answer two", "a3": "answer three"})
    )

    profile = store.profiles["u1"]
    assert profile.password_hashes == []
    assert [q.question_id for q in profile.security_questions] == ["a1", "a2", "a3"]
    assert await verifier.has_security_questions("u1") is True
    assert await verifier.has_security_questions("u9") is False


@pytest.mark.anyio
async def test_question_text_resolution(verifier, auth_provider):
    auth_provider.add_user("u1", EMAIL, "0ld!Password")
    await verifier.setup_security_questions(
        "u1",
        [
            SecurityAnswer(question_id="first_pet_detail", answer="Rex, in March"),
            SecurityAnswer(question_id="own_q", answer="blue bicycle", question="My first bike colour?"),
            SecurityAnswer(question_id="bare_q", answer="something long"),
        ],
    )

    views = await verifier.get_user_security_questions(EMAIL)
    assert [(v.question_id, v.question) for v in views] == [
        ("first_pet_detail", SECURITY_QUESTIONS["first_pet_detail"]),
        ("own_q", "My first bike colour?"),
        ("bare_q", "bare_q"),
    ]
    assert await verifier.get_user_security_questions("ghost@example.com") == []


# --- Сброс пароля ---

@pytest.mark.anyio
async def test_reset_dispatches_and_audits(verifier, user_with_questions, auth_provider, store):
    await verifier.reset_password_with_security_questions(EMAIL, answers(ANSWERS), STRONG_PASSWORD)

    assert auth_provider.reset_requests == [EMAIL]
    assert len(store.profiles["u1"].password_hashes) == 1
    event = store.audit[-1]
    assert event.action == ACTION_KNOWLEDGE_RESET
    assert event.actor == EMAIL
    assert event.target == "u1"


@pytest.mark.anyio
async def test_reset_with_wrong_answers(verifier, user_with_questions, auth_provider, store):
    with pytest.raises(AuthError) as exc:
        await verifier.reset_password_with_security_questions(
            EMAIL, answers({"q1": "nope nope", "q2": "nope nope"}), STRONG_PASSWORD
        )
    assert exc.value.code is ErrorCode.RECOVERY_VERIFICATION_FAILED
    assert auth_provider.reset_requests == []
    assert store.audit == []


@pytest.mark.anyio
async def test_reset_rejects_weak_password(verifier, user_with_questions, auth_provider):
    with pytest.raises(ValidationError):
        await verifier.reset_password_with_security_questions(EMAIL, answers(ANSWERS), "weak")
    assert auth_provider.reset_requests == []


@pytest.mark.anyio
async def test_reset_rejects_reused_password(verifier, user_with_questions):
    await verifier.reset_password_with_security_questions(EMAIL, answers(ANSWERS), STRONG_PASSWORD)
    with pytest.raises(ReuseError):
        await verifier.reset_password_with_security_questions(EMAIL, answers(ANSWERS), STRONG_PASSWORD)


@pytest.mark.anyio
async def test_reset_rate_error_propagates(verifier, user_with_questions, auth_provider, store):
    auth_provider.reset_error = RateError("Too many reset requests")
    with pytest.raises(RateError):
        await verifier.reset_password_with_security_questions(EMAIL, answers(ANSWERS), STRONG_PASSWORD)
    assert store.profiles["u1"].password_hashes == []


@pytest.mark.anyio
async def test_reset_survives_audit_outage(verifier, user_with_questions, auth_provider, store, monkeypatch):
    async def audit_down(event):
        raise PersistenceError("audit down")

    monkeypatch.setattr(store, "append_audit_event", audit_down)
    await verifier.reset_password_with_security_questions(EMAIL, answers(ANSWERS), STRONG_PASSWORD)

    assert auth_provider.reset_requests == [EMAIL]
    assert len(store.profiles["u1"].password_hashes) == 1


# --- Длинные ответы ---

@pytest.mark.anyio
async def test_long_sentence_answers(verifier, auth_provider):
    auth_provider.add_user("u2", "u2@example.com", "0ld!Password")
    long_answers = {
        "q1": "The name of my first elementary school teacher was Mrs. Smith, Springfield",
        "q2": "A small brown dog called Rex that we adopted from the shelter in March 2004",
        "q3": "Maple Street 42, the blue house next to the old bakery on the corner of Elm",
    }
    await verifier.setup_security_questions("u2", answers(long_answers))

    assert await verifier.verify_security_questions("u2@example.com", answers(long_answers)) is True
    wrong = {"q1": long_answers["q1"][:-11] + "Shelbyville", "q2": long_answers["q2"][:-4] + "2005"}
    assert await verifier.verify_security_questions("u2@example.com", answers(wrong)) is False
