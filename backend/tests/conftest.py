import pytest

from backend.app.services.rules import load_rule_set, reset_rule_cache


SAMPLE_FORM_TEXT = """
Goal: Chad will shower daily with staff encouragement and verbal prompts wash his body, hair to rinse all soap off completely and dry himself off head to toe.

Active Treatment:
Individual will complete daily hygiene routine with minimal supervision.

Individual Response:
Client demonstrates understanding of hygiene importance and follows routine consistently.

Scores/Comments:
Independent

Goal: Chad will remove and wash his bed linens once a week with verbal prompts from staff

Active Treatment:
Staff will provide weekly reminders and assistance as needed.

Individual Response:
Client shows improvement in maintaining clean living environment.

Scores/Comments:
Not completed/necessary on this shift

Goal: Chad will clean his bathroom twice a week by wiping down his sink, toilet and shower, then sweeping and mopping the floor, wiping down the mirror and window ledges with verbal prompts from staff to stay on task and physical assistance if needed.

Active Treatment:
Structured cleaning schedule with step-by-step guidance.

Individual Response:
Client follows cleaning checklist with minimal prompting.

Scores/Comments:
Progressing well with bathroom maintenance tasks.
"""


@pytest.fixture(scope="session")
def rules():
    return load_rule_set()


@pytest.fixture
def sample_form_text():
    return SAMPLE_FORM_TEXT


@pytest.fixture
def fresh_rule_cache():
    reset_rule_cache()
    yield
    reset_rule_cache()
