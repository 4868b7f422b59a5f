import pytest
from pydantic import ValidationError

from src.heart.domain.models import (
    AnswerOutcome,
    AnswerResult,
    PlayerProfile,
    Puzzle,
    ScoreRecord,
)


class TestScoreRecord:
    def test_increment_raises_best_with_score(self):
        record = ScoreRecord(identity="u1", score=4, best_record=4)

        updated = record.incremented()

        assert updated.score == 5
        assert updated.best_record == 5

    def test_increment_keeps_higher_best(self):
        """Best never decreases."""
        record = ScoreRecord(identity="u1", score=2, best_record=9)

        updated = record.incremented()

        assert updated.score == 3
        assert updated.best_record == 9

    def test_increment_does_not_mutate_original(self):
        record = ScoreRecord(identity="u1", score=1, best_record=1)
        record.incremented()
        assert record.score == 1

    def test_best_below_score_is_rejected(self):
        with pytest.raises(ValidationError):
            ScoreRecord(identity="u1", score=5, best_record=3)

    def test_negative_score_is_rejected(self):
        with pytest.raises(ValidationError):
            ScoreRecord(identity="u1", score=-1, best_record=0)


class TestPuzzle:
    def test_is_solved_by_exact_match_only(self):
        puzzle = Puzzle(image_reference="img", solution=7)
        assert puzzle.is_solved_by(7)
        assert not puzzle.is_solved_by(8)

    def test_solution_must_be_integer(self):
        with pytest.raises(ValidationError):
            Puzzle(image_reference="img", solution="seven")


def test_profile_to_record():
    profile = PlayerProfile(identity="u1", username="n", score=3, best_record=6)
    record = profile.to_record()
    assert (record.identity, record.score, record.best_record) == ("u1", 3, 6)


def test_answer_result_is_correct_flag():
    assert AnswerResult(AnswerOutcome.CORRECT, score=1).is_correct
    assert not AnswerResult(AnswerOutcome.WRONG_ANSWER).is_correct
