from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizgame import db
from quizgame.errors import ConflictError, NotFoundError, ValidationError
from quizgame.models import Question, DIFFICULTIES
from quizgame.services import storage_fault

OPTION_COUNT = 4
DUPLICATE_MESSAGE = 'A question with this text already exists.'


def _clean_fields(data, partial=False):
    """Map a wire payload onto column values, validating what is present."""
    fields = {}

    if 'question' in data or not partial:
        text = data.get('question')
        if not isinstance(text, str) or not text.strip():
            raise ValidationError('Question, options, and correct answer are required.')
        fields['question'] = text.strip()

    if 'options' in data or not partial:
        options = data.get('options')
        if options is None:
            raise ValidationError('Question, options, and correct answer are required.')
        if (not isinstance(options, list) or len(options) != OPTION_COUNT
                or not all(isinstance(o, str) and o.strip() for o in options)):
            raise ValidationError(f'Options must be an array of exactly {OPTION_COUNT} strings.')
        fields['options'] = [o.strip() for o in options]

    if 'correctAnswer' in data or not partial:
        answer = data.get('correctAnswer')
        if answer is None:
            raise ValidationError('Question, options, and correct answer are required.')
        if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < OPTION_COUNT:
            raise ValidationError(f'Correct answer index must be between 0 and {OPTION_COUNT - 1}.')
        fields['correct_answer'] = answer

    if data.get('category') is not None:
        if not isinstance(data['category'], str) or not data['category'].strip():
            raise ValidationError('category must be a non-empty string.')
        fields['category'] = data['category'].strip()

    if data.get('difficulty') is not None:
        if data['difficulty'] not in DIFFICULTIES:
            raise ValidationError(f"difficulty must be one of: {', '.join(DIFFICULTIES)}.")
        fields['difficulty'] = data['difficulty']

    return fields


def _parse_question_id(question_id):
    try:
        return int(question_id)
    except (TypeError, ValueError):
        raise ValidationError('Question ID must be an integer.')


def get_question(question_id) -> Question:
    question_id = _parse_question_id(question_id)
    try:
        question = db.session.get(Question, question_id)
    except SQLAlchemyError as exc:
        raise storage_fault('loading the question', exc) from exc
    if question is None:
        raise NotFoundError('Question not found.')
    return question


def add_question(data) -> Question:
    fields = _clean_fields(data or {})
    question = Question(**fields)
    try:
        db.session.add(question)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(DUPLICATE_MESSAGE) from exc
    except SQLAlchemyError as exc:
        raise storage_fault('adding the question', exc) from exc
    current_app.logger.info(f"[question-add] id={question.id} category={question.category}")
    return question


def update_question(question_id, data) -> Question:
    fields = _clean_fields(data or {}, partial=True)
    question = get_question(question_id)
    if 'correct_answer' in fields or 'options' in fields:
        answer = fields.get('correct_answer', question.correct_answer)
        if not 0 <= answer < len(fields.get('options', question.options)):
            raise ValidationError(f'Correct answer index must be between 0 and {OPTION_COUNT - 1}.')
    try:
        for key, value in fields.items():
            setattr(question, key, value)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(DUPLICATE_MESSAGE) from exc
    except SQLAlchemyError as exc:
        raise storage_fault('updating the question', exc) from exc
    current_app.logger.info(f"[question-update] id={question.id} fields={sorted(fields)}")
    return question


def delete_question(question_id) -> None:
    question = get_question(question_id)
    try:
        db.session.delete(question)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise storage_fault('deleting the question', exc) from exc
    current_app.logger.info(f"[question-delete] id={question_id}")


def get_random_questions(limit=None):
    """Random sample of questions for one game."""
    if limit is None or limit == '':
        limit = current_app.config.get('GAME_QUESTION_LIMIT', 10)
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = current_app.config.get('GAME_QUESTION_LIMIT', 10)
    if limit <= 0:
        limit = current_app.config.get('GAME_QUESTION_LIMIT', 10)

    try:
        questions = Question.query.order_by(db.func.random()).limit(limit).all()
    except SQLAlchemyError as exc:
        raise storage_fault('sampling questions', exc) from exc
    if not questions:
        raise NotFoundError('No questions found in the database.')
    return questions
