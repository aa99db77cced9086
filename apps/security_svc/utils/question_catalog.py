# apps/security_svc/utils/question_catalog.py
from typing import Dict, Optional

# Вопросы подобраны так, чтобы ответ был конкретным и плохо угадывался
SECURITY_QUESTIONS: Dict[str, str] = {
    "childhood_address": "What was the house number and street name of your first childhood home?",
    "first_pet_detail": "What was your first pet's name and the month you got them?",
    "memorable_teacher": "What was the full name of your most memorable teacher and what grade/subject?",
    "childhood_friend": "What was your childhood best friend's full name and their middle initial?",
    "first_job_detail": "What was your first job title and the name of your supervisor?",
    "birth_hospital": "What was the name of the hospital where you were born and the city?",
    "dream_vacation": "What was your dream vacation destination as a child and why?",
    "unique_talent": "What unique skill or talent did you have as a child that few people knew about?",
    "childhood_fear": "What was your biggest childhood fear and how old were you when you overcame it?",
    "first_concert": "What was the first concert or live performance you attended and who did you go with?",
}


def resolve_question_text(question_id: str, supplied: Optional[str] = None) -> str:
    """Текст из каталога, иначе присланный клиентом, иначе сам id."""
    if question_id in SECURITY_QUESTIONS:
        return SECURITY_QUESTIONS[question_id]
    if supplied and supplied.strip():
        return supplied.strip()
    return question_id
