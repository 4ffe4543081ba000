"""Ranked-choice polls: creation, vote submission and Borda count tallying."""

from typing import Optional
from datetime import datetime, timezone
from src.models.message import SlackMessage
from src.models.poll import (
    MAX_OPTIONS,
    MIN_OPTIONS,
    CloseOutcome,
    Poll,
    PollClosure,
    PollCreation,
    PollTally,
    VoteOutcome,
)
from src.services.supabase_client import SupabaseStore
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

BAR_WIDTH = 10


def parse_ranking(text: Optional[str]) -> Optional[list[int]]:
    """Parse "2,1,3" into [2, 1, 3]; None if any part isn't an integer."""
    if not text:
        return None
    try:
        return [int(part.strip()) for part in text.split(",")]
    except ValueError:
        return None


def is_valid_ranking(ranking: Optional[list[int]], option_count: int) -> bool:
    """A ranking must be a permutation of 1..N: no omissions, no repeats, nothing out of range."""
    if ranking is None or len(ranking) != option_count:
        return False
    return sorted(ranking) == list(range(1, option_count + 1))


def validate_poll(question: Optional[str], options: list[Optional[str]]) -> tuple[str, list[str], dict[str, str]]:
    """Trim the question and drop blank options; errors are keyed by "question" and "options"."""
    question = (question or "").strip()
    cleaned = [option.strip() for option in options if option and option.strip()]

    errors = {}
    if not question:
        errors["question"] = "Please provide a question"
    if len(cleaned) < MIN_OPTIONS:
        errors["options"] = f"Please provide at least {MIN_OPTIONS} valid options"
    elif len(cleaned) > MAX_OPTIONS:
        errors["options"] = f"Maximum {MAX_OPTIONS} options allowed"
    return question, cleaned, errors


def tally(options: list[str], votes: dict[str, list[int]]) -> PollTally:
    """Borda count: the option ranked ``r`` by a voter earns ``N - r`` points from them.

    Winners are all options sharing the top score; ties are not broken.
    """
    option_count = len(options)
    scores = [0] * option_count
    for ranking in votes.values():
        for option_index, rank in enumerate(ranking):
            scores[option_index] += option_count - rank

    voter_count = len(votes)
    winners: list[str] = []
    if voter_count:
        top_score = max(scores)
        winners = [option for option, score in zip(options, scores) if score == top_score]

    return PollTally(
        scores=scores,
        winners=winners,
        voter_count=voter_count,
        max_possible=(option_count - 1) * voter_count,
    )


def score_bar(score: int, max_possible: int) -> str:
    filled = round(score / max_possible * BAR_WIDTH) if max_possible else 0
    return "█" * filled + "░" * (BAR_WIDTH - filled)


def render_results(poll: Poll, result: PollTally) -> SlackMessage:
    lines = [f"*Poll results: {poll.question}*"]
    for option, score in zip(poll.options, result.scores):
        lines.append(f"• {option}: {score} point{'' if score == 1 else 's'} `{score_bar(score, result.max_possible)}`")

    if not result.voter_count:
        lines.append("_No votes were cast._")
    elif result.is_tie:
        tied = ", ".join(f"*{winner}*" for winner in result.winners)
        lines.append(f"🤝 It's a tie between {tied}!")
    else:
        lines.append(f"🏆 Winner: *{result.winners[0]}*")
    lines.append(f"_{result.voter_count} voter{'' if result.voter_count == 1 else 's'}_")
    return SlackMessage(text="\n".join(lines))


class PollEngine:
    """Open -> Closed state machine over the polls table."""

    def __init__(self, store: SupabaseStore):
        self._store = store

    async def create_poll(
        self,
        channel_id: str,
        created_by_id: str,
        question: Optional[str],
        options: list[Optional[str]],
    ) -> PollCreation:
        question, cleaned, errors = validate_poll(question, options)
        if errors:
            return PollCreation(errors=errors)

        row = await self._store.insert_poll({
            "slack_channel_id": channel_id,
            "created_by_id": created_by_id,
            "question": question,
            "options": cleaned,
            "votes": {},
        })
        poll = Poll.model_validate(row)
        logger.info("Poll created", poll_id=poll.id, channel_id=channel_id, options=len(cleaned))
        return PollCreation(poll=poll)

    async def get_poll(self, poll_id: str) -> Optional[Poll]:
        row = await self._store.get_poll(poll_id)
        return Poll.model_validate(row) if row else None

    async def vote(self, poll_id: str, voter_id: str, ranking: Optional[list[int]]) -> VoteOutcome:
        """Record a full ranking for the voter, replacing any earlier one."""
        poll = await self.get_poll(poll_id)
        if poll is None:
            return VoteOutcome.NOT_FOUND
        if not poll.is_open:
            return VoteOutcome.CLOSED
        if not is_valid_ranking(ranking, len(poll.options)):
            return VoteOutcome.INVALID_RANKING

        votes = dict(poll.votes)
        votes[voter_id] = list(ranking)
        updated = await self._store.update_open_poll(poll_id, {"votes": votes})
        if updated is None:
            # Closed between the read and the write
            return VoteOutcome.CLOSED

        logger.info("Vote recorded", poll_id=poll_id, voter_id=mask_user_id(voter_id))
        return VoteOutcome.RECORDED

    async def close(self, poll_id: str, now: Optional[datetime] = None) -> PollClosure:
        """Close the poll once and tally it. Closing again changes nothing."""
        poll = await self.get_poll(poll_id)
        if poll is None:
            return PollClosure(outcome=CloseOutcome.NOT_FOUND)
        if not poll.is_open:
            return PollClosure(outcome=CloseOutcome.ALREADY_CLOSED, poll=poll)

        closed_at = (now or datetime.now(timezone.utc)).isoformat()
        updated = await self._store.update_open_poll(poll_id, {"closed_at": closed_at})
        if updated is None:
            return PollClosure(outcome=CloseOutcome.ALREADY_CLOSED, poll=poll)

        closed = Poll.model_validate(updated)
        result = tally(closed.options, closed.votes)
        logger.info(
            "Poll closed",
            poll_id=poll_id,
            voters=result.voter_count,
            tie=result.is_tie
        )
        return PollClosure(outcome=CloseOutcome.CLOSED, poll=closed, tally=result)
