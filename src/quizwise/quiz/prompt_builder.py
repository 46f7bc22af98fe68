"""
Prompt construction for the external generation tool.

Everything here is pure: no I/O, no module state.
"""
import os
import re
from typing import Iterable, List, Optional

from quizwise.quiz.models import (
    MAX_QUESTION_COUNT,
    MIN_QUESTION_COUNT,
    Difficulty,
    GenerationMode,
    QuestionStyle,
    QuizSettings,
)

FOCUS_MAX_CHARS = 150
REMEDIAL_MAX_ITEMS = 10
REMEDIAL_MAX_CHARS = 100
AVOID_MAX_ITEMS = 15
AVOID_MAX_CHARS = 50
CONTEXT_MAX_CHARS = 5000
QUESTION_MAX_CHARS = 2000

_INJECTION_PATTERNS = (
    (re.compile(r"[\r\n\t]"), " "),
    (re.compile(r"ignore\s*(previous|all|above)", re.IGNORECASE), ""),
    (re.compile(r"(system|assistant|user)\s*:", re.IGNORECASE), ""),
    (re.compile(r"\\u[0-9a-fA-F]{4}"), ""),
    (re.compile(r"[{}\[\]`]"), ""),
    (re.compile(r"[\"'\\]"), ""),
    (re.compile(r"#{2,}"), ""),
    (re.compile(r"[\x00-\x1f\x7f]"), ""),
    (re.compile(r"\s+"), " "),
)


def sanitize_user_input(value, max_length: int = FOCUS_MAX_CHARS) -> str:
    """Strip prompt-injection markers and control characters from user text."""
    if not isinstance(value, str):
        return ""
    for pattern, repl in _INJECTION_PATTERNS:
        value = pattern.sub(repl, value)
    return value[:max_length].strip()


def sanitize_list(items: Optional[Iterable], max_items: int, max_length: int) -> List[str]:
    if not items:
        return []
    cleaned = (sanitize_user_input(str(item), max_length) for item in list(items)[:max_items])
    return [item for item in cleaned if item]


TEMPLATES = {
    "en": {
        "language": "English",
        "persona": (
            "### PERSONA: SENIOR BOARD EXAMINER\n"
            "You write exam questions that test reasoning, not rote memorization."
        ),
        "criteria": (
            "### CRITERIA\n"
            "1. Prefer scenario-based questions that require applying the material.\n"
            "2. Ask \"why\" and \"how\", not only \"what\".\n"
            "3. Wrong options must be plausible (common mistakes, similar concepts)."
        ),
        "difficulty": {
            Difficulty.EASY: "EASY. Bloom: recall/understand. Core concepts and classic facts.",
            Difficulty.MEDIUM: "MEDIUM. Bloom: apply. Common cases and standard procedures.",
            Difficulty.HARD: "HARD. Bloom: analyze/evaluate. Atypical cases, edge cases, grey areas.",
        },
        "focus": "FOCUS TOPIC: {topic}",
        "general": "GENERAL SCOPE",
        "remedial": (
            "MODE: REMEDIAL. The student missed: {topics}. "
            "Ask about the same concepts from a new angle and explain like a mini-lesson."
        ),
        "spiral": "MODE: SPIRAL LEARNING. Already asked: {topics}. Do not repeat these; go deeper.",
        "mixed": (
            "MODE: FULL EXAM SIMULATION.\n"
            "1. 50% case / reasoning\n"
            "2. 30% mechanism / classic\n"
            "3. 20% attention / negative"
        ),
        "focus_styles": "FOCUS MODE: write questions of these types only:\n{styles}",
        "styles": {
            QuestionStyle.CLASSIC: "HIGH-YIELD KNOWLEDGE in context.",
            QuestionStyle.NEGATIVE: "EXCLUSION: \"Which of the following is NOT ...?\"",
            QuestionStyle.STATEMENT: "STATEMENT ANALYSIS (I, II, III).",
            QuestionStyle.ORDERING: "NEXT STEP / ordering of a procedure.",
            QuestionStyle.FILL_BLANK: "KEY CRITERION: ask for the missing critical item.",
            QuestionStyle.REASONING: "COMPLEX CASE combining several topics.",
            QuestionStyle.MATCHING: "MATCHING concepts to their features.",
        },
        "explanation": "**Correct:** why it is right.\\n\\n**Incorrect:** why the others are not.",
    },
    "tr": {
        "language": "Türkçe",
        "persona": (
            "### PERSONA: KIDEMLİ SINAV KOMİSYONU ÜYESİ\n"
            "Ezber yerine muhakemeyi ölçen sınav soruları hazırlarsın."
        ),
        "criteria": (
            "### KRİTERLER\n"
            "1. Bilginin uygulanmasını gerektiren senaryo soruları tercih et.\n"
            "2. \"Nedir?\" yerine \"Neden?\" ve \"Nasıl?\" sor.\n"
            "3. Yanlış şıklar mantıklı olmalı (yaygın hatalar, benzer kavramlar)."
        ),
        "difficulty": {
            Difficulty.EASY: "KOLAY. Bloom: bilgi/kavrama. Temel kavramlar.",
            Difficulty.MEDIUM: "ORTA. Bloom: uygulama. Sık karşılaşılan durumlar.",
            Difficulty.HARD: "ZOR. Bloom: analiz/sentez. Atipik durumlar, gri alanlar.",
        },
        "focus": "ODAK KONUSU: {topic}",
        "general": "GENEL KAPSAM",
        "remedial": (
            "MOD: EKSİK KAPATMA. Zayıf konular: {topics}. "
            "Aynı kavramları farklı açıdan sor, mini ders gibi açıkla."
        ),
        "spiral": "MOD: SPİRAL ÖĞRENME. Öncekiler: {topics}. Aynılarını sorma, detaylara in.",
        "mixed": (
            "MOD: TAM SINAV SİMÜLASYONU.\n"
            "1. %50 vaka / muhakeme\n"
            "2. %30 mekanizma / klasik\n"
            "3. %20 dikkat / olumsuz"
        ),
        "focus_styles": "ODAK MODU: yalnızca şu tiplerde soru hazırla:\n{styles}",
        "styles": {
            QuestionStyle.CLASSIC: "YÜKSEK VERİMLİ BİLGİ, bağlam içinde.",
            QuestionStyle.NEGATIVE: "DIŞLAMA: \"Hangisi ... DEĞİLDİR?\"",
            QuestionStyle.STATEMENT: "ÖNCÜL ANALİZİ (I, II, III).",
            QuestionStyle.ORDERING: "SIRADAKİ ADIM / işlem sıralaması.",
            QuestionStyle.FILL_BLANK: "KİLİT KRİTER: eksik kritik öğeyi sor.",
            QuestionStyle.REASONING: "BİRDEN ÇOK KONUYU BİRLEŞTİREN VAKA.",
            QuestionStyle.MATCHING: "KAVRAM-ÖZELLİK EŞLEŞTİRME.",
        },
        "explanation": "**Doğru Olan:** neden doğru.\\n\\n**Yanlış Olanlar:** diğerleri neden uygun değil.",
    },
}


def question_count_for(settings: QuizSettings, mode: GenerationMode, remedial_topics=None) -> int:
    if mode == GenerationMode.REMEDIAL:
        count = len(remedial_topics or [])
    else:
        count = settings.question_count
    return min(max(count, MIN_QUESTION_COUNT), MAX_QUESTION_COUNT)


def _style_instruction(t: dict, styles) -> str:
    if not styles or QuestionStyle.MIXED in styles:
        return t["mixed"]
    lines = [f"- {t['styles'][s]}" for s in styles if s in t["styles"]]
    if not lines:
        return t["mixed"]
    return t["focus_styles"].format(styles="\n".join(lines))


def build_quiz_prompt(
    settings: QuizSettings,
    mode: GenerationMode,
    output_target: str,
    source_name: str = "",
    language: str = "en",
    remedial_topics: Optional[List[str]] = None,
    avoid_topics: Optional[List[str]] = None,
) -> str:
    t = TEMPLATES.get(language, TEMPLATES["en"])
    count = question_count_for(settings, mode, remedial_topics)

    focus = sanitize_user_input(settings.focus_topic, FOCUS_MAX_CHARS)
    remedial = sanitize_list(remedial_topics, REMEDIAL_MAX_ITEMS, REMEDIAL_MAX_CHARS)
    avoid = sanitize_list((avoid_topics or [])[-AVOID_MAX_ITEMS:], AVOID_MAX_ITEMS, AVOID_MAX_CHARS)

    context = ""
    if mode == GenerationMode.REMEDIAL and remedial:
        context = t["remedial"].format(topics=", ".join(remedial))
    if avoid:
        context = (context + "\n    " if context else "") + t["spiral"].format(topics=", ".join(avoid))

    output_name = os.path.basename(output_target)
    source = f"@{os.path.basename(source_name)} " if source_name else ""
    topic = t["focus"].format(topic=focus) if focus else t["general"]
    difficulty = t["difficulty"][settings.difficulty]
    distribution = _style_instruction(t, settings.style)
    persona, criteria = t["persona"], t["criteria"]
    target_language, explanation = t["language"], t["explanation"]

    return f"""
    COMMAND: Analyze the file {source}and generate a {count}-question quiz.

    CRITICAL - FILE OUTPUT REQUIRED:
    You MUST write the JSON result to file: {output_name}
    Use your write_file tool to create this file with ONLY the JSON array content.
    DO NOT output the JSON to console. WRITE IT TO THE FILE.

    INSTRUCTIONS:
    1. DO NOT greet me. DO NOT say "I am ready".
    2. Write ONLY a strict JSON ARRAY to the file. NO MARKDOWN, NO EXTRA TEXT.
    3. Generate EXACTLY {count} questions.

    {persona}

    {criteria}

    ### PARAMETERS
    - **Language:** {target_language}
    - **Difficulty:** {difficulty}
    - **Topic:** {topic}
    {context}

    ### QUESTION DISTRIBUTION
    {distribution}

    ### OUTPUT FORMAT (JSON)
    [
      {{
        "id": "q1",
        "text": "Question text...",
        "options": ["A", "B", "C", "D", "E"],
        "correctAnswerIndex": 1,
        "explanation": "{explanation}",
        "sourceQuote": "Ref..."
      }}
    ]"""


def build_assistant_prompt(question: str, output_target: str, context: Optional[str] = None) -> str:
    clean_question = sanitize_user_input(question, QUESTION_MAX_CHARS)
    prompt = f"""
    ROLE: You are an expert academic assistant.
    TASK: Answer the user's question concisely and accurately.

    CRITICAL - FILE OUTPUT REQUIRED:
    Write the JSON result to file: {os.path.basename(output_target)}

    OUTPUT FORMAT: JSON Object
    {{
        "answer": "MARKDOWN formatted answer here...",
        "suggestions": ["Follow-up question 1", "Follow-up question 2"]
    }}

    USER QUESTION: "{clean_question}"
    """

    if context:
        prompt += f"\nCONTEXT/BACKGROUND INFO:\n{context[:CONTEXT_MAX_CHARS]}"

    prompt += "\n\nIMPORTANT: Output ONLY valid JSON."
    return prompt
