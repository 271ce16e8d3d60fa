"""CLI entrypoint for describing feature sets and encoding messages.

Usage:
    inbox-features describe --feature-set WithRecipient
    inbox-features encode --user user.json --messages messages.jsonl \
        --feature-set WithRecipient --state-in vocab.json --state-out vocab.json

Each encoded message becomes one JSON line ``{message_id, indices, values, length}``.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from inbox_features.cli.common_cli import (
    EXIT_RUNTIME_ERROR,
    InboxCliError,
    dump_json_output,
    load_json_file,
    resolve_optional_output_path,
    stream_jsonl,
)
from inbox_features.domain import Message, User
from inbox_features.errors import FeatureError
from inbox_features.features import (
    FeatureSet,
    FeatureSetType,
    read_feature_set_state,
    save_feature_set,
)

logger = logging.getLogger(__name__)

_SET_CHOICES = click.Choice([t.value for t in FeatureSetType], case_sensitive=False)


def _set_type(value: str) -> FeatureSetType:
    for set_type in FeatureSetType:
        if set_type.value.lower() == value.lower():
            return set_type
    raise InboxCliError(f"Unknown feature set: {value}")


@click.group()
@click.version_option(package_name="inbox-features")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log vocabulary growth.")
def cli(verbose: bool) -> None:
    """inbox-features CLI for email reply-prediction features."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--feature-set", "feature_set_name", type=_SET_CHOICES, required=True)
@click.option("--out", "output_arg", type=str, default=None, help="Output path, '-' for stdout.")
def describe(feature_set_name: str, output_arg: str | None) -> None:
    """Describe the features of a feature set."""
    feature_set = FeatureSet.build(_set_type(feature_set_name))
    payload = {
        "feature_set": feature_set.name,
        "features": feature_set.descriptions(),
    }
    dump_json_output(payload, resolve_optional_output_path(output_arg))


@cli.command()
@click.option(
    "--user",
    "user_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON file describing the mailbox owner.",
)
@click.option(
    "--messages",
    "messages_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSONL file with one message per line.",
)
@click.option("--feature-set", "feature_set_name", type=_SET_CHOICES, required=True)
@click.option(
    "--state-in",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Vocabulary saved by an earlier session.",
)
@click.option(
    "--state-out",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to save the (possibly grown) vocabulary.",
)
@click.option("--out", "output_arg", type=str, default=None, help="Output JSONL path, '-' for stdout.")
def encode(
    user_path: Path,
    messages_path: Path,
    feature_set_name: str,
    state_in: Path | None,
    state_out: Path | None,
    output_arg: str | None,
) -> None:
    """Encode messages into sparse feature vectors."""
    try:
        user = User.model_validate(load_json_file(user_path, label="user file"))
    except ValidationError as exc:
        raise InboxCliError(f"Invalid user file: {exc}") from exc

    set_type = _set_type(feature_set_name)
    try:
        if state_in is not None:
            feature_set = FeatureSet.build(set_type)
            feature_set.restore_state(read_feature_set_state(state_in))
            feature_set.configure(user)
        else:
            feature_set = FeatureSet.build(set_type, user)
    except FeatureError as exc:
        raise InboxCliError(f"Cannot prepare feature set: {exc}") from exc

    out_path = resolve_optional_output_path(output_arg)
    lines: list[str] = []
    for line_num, row in stream_jsonl(messages_path, label="messages file"):
        try:
            message = Message.model_validate(row)
        except ValidationError as exc:
            raise InboxCliError(f"Invalid message at line {line_num}: {exc}") from exc
        try:
            vector = feature_set.to_sparse(user, message)
        except FeatureError as exc:
            raise InboxCliError(
                f"Cannot encode message {message.message_id}: {exc}", exit_code=EXIT_RUNTIME_ERROR
            ) from exc
        lines.append(json.dumps({"message_id": message.message_id, **vector.to_dict()}))

    text = "\n".join(lines) + ("\n" if lines else "")
    if out_path is None:
        click.echo(text, nl=False)
    else:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")

    if state_out is not None:
        save_feature_set(state_out, feature_set)
    logger.info("Encoded %d messages with %s", len(lines), feature_set.name)


def main() -> int:
    """Main entry point for the CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
