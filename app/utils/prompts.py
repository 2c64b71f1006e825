from typing import List

# ============================================
# SYSTEM MESSAGES
# ============================================

QUESTION_GENERATOR_SYSTEM_MESSAGE = (
    "You are an expert educational content creator. Generate high-quality, "
    "accurate quiz questions that are appropriate for the specified grade level "
    "and subject. Always respond with valid JSON format."
)

HINT_SYSTEM_MESSAGE = (
    "You are a helpful tutor who provides educational hints to students. "
    "Your hints should guide learning without giving away answers."
)

EVALUATOR_SYSTEM_MESSAGE = (
    "You are a fair and encouraging teacher evaluating student answers. "
    "Provide constructive feedback that helps students learn."
)

ADVISOR_SYSTEM_MESSAGE = (
    "You are an encouraging educational advisor who helps students improve their "
    "learning. Provide specific, actionable advice that builds confidence while "
    "addressing learning gaps."
)


# ============================================
# PROMPT BUILDERS
# ============================================


def get_quiz_questions_prompt(
    subject: str, grade_level: int, difficulty: str, count: int, topics: List[str]
) -> str:
    topics_text = f"focusing on: {', '.join(topics)}" if topics else ""
    return f"""Generate {count} {difficulty} level multiple-choice quiz questions for {subject}, grade {grade_level} {topics_text}.

For each question, provide:
1. Question text (clear and age-appropriate)
2. 4 multiple choice options (A, B, C, D)
3. Correct answer (letter)
4. Brief explanation
5. A helpful hint
6. Difficulty level (easy/medium/hard)

Format as JSON array with this structure:
[
  {{
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": "A",
    "explanation": "Explanation here",
    "hint": "Helpful hint here",
    "difficulty": "medium",
    "points": 1
  }}
]

Make sure questions are:
- Age-appropriate for grade {grade_level}
- Educational and engaging
- Free from bias
- Varied in difficulty within the {difficulty} range"""


def get_hint_prompt(question_text: str, subject: str, grade_level: int) -> str:
    return f"""For this {subject} question at grade {grade_level} level:
"{question_text}"

Provide a helpful hint that:
- Guides the student toward the correct answer without giving it away
- Uses age-appropriate language for grade {grade_level}
- Encourages thinking and reasoning
- Is educational and supportive

Respond with just the hint text, nothing else."""


def get_evaluation_prompt(
    question: str,
    user_answer: str,
    correct_answer: str,
    subject: str,
    grade_level: int,
) -> str:
    return f"""Evaluate this student's answer for a grade {grade_level} {subject} question:

Question: {question}
Correct Answer: {correct_answer}
Student's Answer: {user_answer}

Provide evaluation as JSON:
{{
  "isCorrect": boolean,
  "score": number (0-100),
  "feedback": "constructive feedback string",
  "partialCredit": number (0-1 for partial credit)
}}

Consider:
- Grade level appropriateness
- Key concepts covered
- Partial credit for partially correct answers
- Encouraging but honest feedback"""


def get_suggestions_prompt(
    subject: str,
    grade_level: int,
    correct_count: int,
    total_questions: int,
    score_percentage: float,
    incorrect_questions: List[str],
) -> str:
    incorrect_topics = "\n".join(
        f"{question_text[:50]}..." for question_text in incorrect_questions
    )
    return f"""A grade {grade_level} student took a {subject} quiz and got {correct_count}/{total_questions} correct ({score_percentage}%).

Questions they got wrong:
{incorrect_topics}

Provide exactly 2 specific, actionable improvement suggestions that:
- Are encouraging and supportive
- Focus on study strategies and learning techniques
- Are appropriate for grade {grade_level}
- Address the specific subject area ({subject})
- Help improve understanding of the missed concepts

Format as a JSON array of 2 strings:
["Suggestion 1 text", "Suggestion 2 text"]"""
