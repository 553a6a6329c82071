from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from cinequiz import db
from cinequiz.errors import NotFound, StoreUnavailable
from cinequiz.models import Question


class SqlQuestionBank:
    """Question provider and answer checker backed by the question table."""

    def get_question_batch(self, limit: int, category: Optional[str] = None) -> List[dict]:
        """Random batch of questions, serialized without the correct answer."""
        try:
            query = Question.query
            if category:
                query = query.filter_by(category=category)
            rows = query.order_by(func.random()).limit(limit).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable('get_question_batch failed') from exc
        return [q.to_dict() for q in rows]

    def check_answer(self, question_id: str, answer: str) -> bool:
        try:
            question = Question.query.filter_by(id=question_id).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable('check_answer failed') from exc
        if question is None:
            raise NotFound(f'question {question_id} not found')
        return question.correct_answer.strip().upper() == (answer or '').strip().upper()
