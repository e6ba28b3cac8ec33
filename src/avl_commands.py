"""
Replays an AVL command file against a fresh tree and prints the final tree.

A command file is a JSON object mapping operation numbers to commands,

    {"1": {"operation": "Insert", "key": 10},
     "2": {"operation": "DeleteMin"},
     "metadata": {"numOps": 2}}

or a plain JSON list of the same command objects. Entries without an
"operation" field are skipped. The report is the tree snapshot keyed by
node key, with the overall "height" and "size".
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

from avl_tree import AVLTree, EmptyTreeError, TreeStateError

logger = logging.getLogger(__name__)

INSERT = "Insert"
DELETE = "Delete"
DELETE_MIN = "DeleteMin"
OPERATIONS = (INSERT, DELETE, DELETE_MIN)


class CommandError(ValueError):
    pass


class Command(NamedTuple):
    operation: str
    key: Optional[int] = None


def _parse_command(label: Union[str, int], entry: Any) -> Command:
    if not isinstance(entry, dict):
        raise CommandError(f"command {label}: expected an object, got {type(entry).__name__}")

    operation = entry.get("operation")
    if operation not in OPERATIONS:
        raise CommandError(f"command {label}: unknown operation {operation!r}")
    if operation == DELETE_MIN:
        return Command(operation)

    key = entry.get("key")
    if isinstance(key, bool) or not isinstance(key, int):
        raise CommandError(f"command {label}: key must be an integer, got {key!r}")
    return Command(operation, key)


def parse_commands(document: Any) -> List[Command]:
    if isinstance(document, list):
        return [_parse_command(index, entry) for index, entry in enumerate(document)]
    if not isinstance(document, dict):
        raise CommandError(
            f"command document must be a JSON object or list, got {type(document).__name__}"
        )

    # Numbered entries are always commands; other labels (such as
    # "metadata") only when they carry an operation.
    entries = [
        (label, entry) for label, entry in document.items()
        if label.isdecimal() or (isinstance(entry, dict) and "operation" in entry)
    ]
    if all(label.isdecimal() for label, _ in entries):
        entries.sort(key=lambda item: int(item[0]))
    return [_parse_command(label, entry) for label, entry in entries]


def load_commands(path: Union[str, Path]) -> List[Command]:
    with open(path, encoding="utf-8") as f:
        try:
            document = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CommandError(f"{path}: {exc}") from exc
    return parse_commands(document)


def run_commands(tree: AVLTree, commands: Sequence[Command]) -> List[Any]:
    """
    Apply each command to `tree` in order.

    Returns one result per command: None for Insert, whether the key was
    found for Delete, and the removed key for DeleteMin (None when the
    tree was already empty). TreeStateError is left to propagate.
    """
    results: List[Any] = []
    for index, command in enumerate(commands):
        if command.operation == INSERT:
            logger.debug("%d: insert %d", index, command.key)
            tree.insert(command.key)
            results.append(None)
        elif command.operation == DELETE:
            logger.debug("%d: delete %d", index, command.key)
            found = tree.delete(command.key)
            if not found:
                logger.debug("%d: key %d not present", index, command.key)
            results.append(found)
        else:
            try:
                key = tree.delete_min()
            except EmptyTreeError:
                logger.warning("%d: DeleteMin on an empty tree", index)
                results.append(None)
            else:
                logger.debug("%d: delete_min removed %d", index, key)
                results.append(key)

    logger.info("replayed %d commands, %d keys left", len(commands), tree.size())
    return results


def to_json(snapshot: Dict[str, Any]) -> str:
    # Duplicate keys share one entry; the deepest node wins.
    report: Dict[str, Any] = {}
    if "root" in snapshot:
        report["root"] = snapshot["root"]
    for node in snapshot["nodes"]:
        report[str(node["key"])] = {
            field: value for field, value in node.items() if field != "key"
        }
    report["height"] = snapshot["height"]
    report["size"] = snapshot["size"]
    return json.dumps(report, indent=2) + "\n"


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="avl-commands",
        description="Replay an AVL command file and print the resulting tree as JSON.",
    )
    parser.add_argument("command_file", type=Path, help="JSON file of Insert/Delete/DeleteMin commands")
    parser.add_argument("--validate", action="store_true",
                        help="check every tree invariant after each mutation")
    parser.add_argument("-o", "--output", type=Path, help="write the report here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every command")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        commands = load_commands(args.command_file)
    except (OSError, CommandError) as exc:
        logger.error("cannot load commands: %s", exc)
        return 1

    tree = AVLTree(validate=args.validate)
    try:
        run_commands(tree, commands)
    except TreeStateError as exc:
        logger.error("tree is corrupted, stopping: %s", exc)
        return 2

    report = to_json(tree.snapshot())
    if args.output is None:
        sys.stdout.write(report)
    else:
        args.output.write_text(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
