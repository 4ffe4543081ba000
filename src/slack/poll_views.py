"""Block Kit views and blocks for ranked-choice polls."""

import json
from typing import Any, Optional
from src.models.poll import MAX_OPTIONS, MIN_OPTIONS, Poll

CREATE_POLL_CALLBACK = "create_poll_modal"
VOTE_POLL_CALLBACK = "vote_poll_modal"
ADD_OPTION_ACTION = "add_poll_option"
VOTE_ACTION = "vote_poll"
CLOSE_ACTION = "close_poll"

QUESTION_BLOCK = "question_block"
ADD_OPTION_BLOCK = "add_option_block"
RANKING_BLOCK = "ranking_input"


def _plain(text: str) -> dict:
    return {"type": "plain_text", "text": text}


def option_block(number: int) -> dict:
    return {
        "type": "input",
        "block_id": f"option_{number}",
        "optional": number > MIN_OPTIONS,
        "element": {
            "type": "plain_text_input",
            "action_id": "option",
            "placeholder": _plain("Enter an option"),
        },
        "label": _plain(f"Option {number}"),
    }


def _create_poll_modal(blocks: list[dict], private_metadata: str) -> dict:
    return {
        "type": "modal",
        "callback_id": CREATE_POLL_CALLBACK,
        "title": _plain("Create a Poll"),
        "submit": _plain("Create"),
        "close": _plain("Cancel"),
        "private_metadata": private_metadata,
        "blocks": blocks,
    }


def create_poll_view(channel_id: str) -> dict:
    blocks = [
        {
            "type": "input",
            "block_id": QUESTION_BLOCK,
            "element": {
                "type": "plain_text_input",
                "action_id": "question",
                "placeholder": _plain("What would you like to ask?"),
            },
            "label": _plain("Question"),
        },
        *(option_block(number) for number in range(1, MIN_OPTIONS + 1)),
        {
            "type": "actions",
            "block_id": ADD_OPTION_BLOCK,
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Add Another Option", "emoji": True},
                    "action_id": ADD_OPTION_ACTION,
                },
            ],
        },
    ]
    metadata = json.dumps({"channel_id": channel_id, "num_options": MIN_OPTIONS})
    return _create_poll_modal(blocks, metadata)


def view_with_added_option(view: dict) -> dict:
    """The create modal with one more option input, or with the add button replaced by a note at the cap."""
    metadata = json.loads(view["private_metadata"])
    num_options = metadata["num_options"] + 1
    blocks = list(view["blocks"])

    if num_options > MAX_OPTIONS:
        blocks = [
            {"type": "context", "elements": [{"type": "mrkdwn", "text": f"Maximum {MAX_OPTIONS} options allowed"}]}
            if block.get("block_id") == ADD_OPTION_BLOCK else block
            for block in blocks
        ]
        return _create_poll_modal(blocks, view["private_metadata"])

    blocks = [*blocks[:-1], option_block(num_options), blocks[-1]]
    return _create_poll_modal(blocks, json.dumps({**metadata, "num_options": num_options}))


def read_create_submission(view: dict) -> tuple[str, Optional[str], list[Optional[str]]]:
    """(channel_id, question, raw options in order) from a submitted create modal."""
    metadata = json.loads(view["private_metadata"])
    values = view["state"]["values"]
    question = values.get(QUESTION_BLOCK, {}).get("question", {}).get("value")
    options = [
        values.get(f"option_{number}", {}).get("option", {}).get("value")
        for number in range(1, metadata["num_options"] + 1)
    ]
    return metadata["channel_id"], question, options


def create_errors_to_blocks(errors: dict[str, str]) -> dict[str, str]:
    """Map engine field errors onto modal block IDs."""
    mapped = {}
    if "question" in errors:
        mapped[QUESTION_BLOCK] = errors["question"]
    if "options" in errors:
        mapped["option_1"] = errors["options"]
    return mapped


def poll_message_blocks(poll: Poll) -> list[dict[str, Any]]:
    return [
        {"type": "section", "text": {"type": "mrkdwn", "text": f"*{poll.question}*"}},
        {"type": "divider"},
        *(
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*{index + 1}.* {option}"}}
            for index, option in enumerate(poll.options)
        ),
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Vote", "emoji": True},
                    "style": "primary",
                    "value": poll.id,
                    "action_id": VOTE_ACTION,
                },
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Close", "emoji": True},
                    "style": "danger",
                    "value": poll.id,
                    "action_id": CLOSE_ACTION,
                },
            ],
        },
    ]


def vote_view(poll: Poll, voter_id: str) -> dict:
    """Ranking modal, prefilled with the voter's previous ranking or 1..N."""
    option_count = len(poll.options)
    current = poll.votes.get(voter_id) or list(range(1, option_count + 1))
    listing = "\n".join(f"*{index + 1}.* {option}" for index, option in enumerate(poll.options))
    return {
        "type": "modal",
        "callback_id": VOTE_POLL_CALLBACK,
        "private_metadata": json.dumps({
            "poll_id": poll.id,
            "channel_id": poll.slack_channel_id,
            "option_count": option_count,
        }),
        "title": _plain("Vote on poll"),
        "submit": _plain("Submit"),
        "close": _plain("Cancel"),
        "blocks": [
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*{poll.question}*\n{listing}"}},
            {
                "type": "input",
                "block_id": RANKING_BLOCK,
                "label": _plain(
                    "Enter the rank you give each option, in option order, as comma-separated numbers. "
                    "For example, \"2,1,3\" ranks option 2 first, option 1 second and option 3 third."
                ),
                "element": {
                    "type": "plain_text_input",
                    "action_id": "ranking",
                    "initial_value": ",".join(str(rank) for rank in current),
                },
            },
        ],
    }


def read_ranking_submission(view: dict) -> tuple[dict, Optional[str]]:
    """(metadata with poll_id, channel_id and option_count; raw ranking text) from a submitted vote modal."""
    value = view["state"]["values"].get(RANKING_BLOCK, {}).get("ranking", {}).get("value")
    return json.loads(view["private_metadata"]), value
