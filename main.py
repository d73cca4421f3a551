from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional, Sequence

from wikiauthors import wiki_client
from wikiauthors.actions import apply_actions, check_actions
from wikiauthors.config import EXIT_OK
from wikiauthors.dataset import NameIndex
from wikiauthors.exceptions import CategoryNotFoundError, UsageError, WikiAuthorsError
from wikiauthors.io_utils import load_dataset, parse_json_option, save_dataset, writes_to_stdout
from wikiauthors.log_utils import logger, LogSource, LogCategory
from wikiauthors.match_utils import find_matches, validate_patterns
from wikiauthors.merge_utils import reconcile_members
from wikiauthors.models import Action, ActionVerb
from wikiauthors.text_utils import parse_lang_list


USAGE_EXAMPLES = """\
examples:
  main.py load --from old.json --to new.json \\
      --lang uk --langs=ru,en,crh --category 'Категорія:Українські поети'

  main.py update --from old.json --to new.json \\
      --find '{"name":{"uk":"Руданський Степан Васильович"}}' \\
      --add '{"tags":[{"uk":"Українські класики"}]}'

update lists the selected records as "index [lang]name ..." on stdout when
--to names a file; without --to the list goes to the log on stderr.
"""


def build_parser() -> argparse.ArgumentParser:
    """
    Describe the command line: a command (load or update) followed by options.
    Every option is accepted with either command; each command checks the ones
    it needs.
    """
    parser = argparse.ArgumentParser(
        prog="wikiauthors",
        description="Load or update author information from wikipedia.org.",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", choices=["load", "update"], help="what to do with the dataset")
    parser.add_argument("--from", dest="from_file", metavar="FILE",
                        help="JSON dataset to extend (required for update)")
    parser.add_argument("--to", dest="to_file", metavar="FILE",
                        help="where to write the result; stdout when omitted")
    parser.add_argument("--lang", help="language of the wiki to query and of the category tag")
    parser.add_argument("--langs", action="append", default=[], metavar="LANGS",
                        help="secondary languages, comma-separated or repeated")
    parser.add_argument("--category", help="full category title, e.g. 'Категорія:Українські поети'")
    parser.add_argument("--find", action="append", default=[], metavar="JSON",
                        help="soft-match pattern selecting records; '{}' selects all")
    parser.add_argument("--add", action="append", default=[], metavar="JSON",
                        help="fields to add to every selected record")
    parser.add_argument("--change", action="append", default=[], metavar="JSON", help="not supported yet")
    parser.add_argument("--delete", action="append", default=[], metavar="JSON", help="not supported yet")
    parser.add_argument("--remove", action="store_true", help="not supported yet")
    parser.add_argument("--log-file", metavar="FILE", help="mirror the log to this file")
    parser.add_argument("--verbose", action="store_true", help="show debug messages")
    return parser


def collect_actions(args: argparse.Namespace) -> List[Action]:
    """
    Turn the action options into Action objects, decoding --add payloads.
    """
    actions = [Action(ActionVerb.ADD, parse_json_option(text, "add")) for text in args.add]
    actions += [Action(ActionVerb.CHANGE) for _ in args.change]
    actions += [Action(ActionVerb.DELETE) for _ in args.delete]
    if args.remove:
        actions.append(Action(ActionVerb.REMOVE))
    return actions


def describe_record(position: int, record: Dict[str, Any]) -> str:
    names = record.get("name") or {}
    return " ".join([str(position)] + [f"[{lang}]{name}" for lang, name in names.items()])


def run_load(args: argparse.Namespace) -> None:
    """
    Fetch every member of a category and fold it into the dataset.

    Usage is checked and the input dataset loaded before the first request,
    so a bad invocation never reaches the network.
    """
    if not args.lang or not args.category:
        raise UsageError("Options --lang LANG and --category TITLE are required.")

    lang = args.lang.strip()
    langs = parse_lang_list(args.langs, lang)

    dataset: List[Dict[str, Any]] = load_dataset(args.from_file) if args.from_file else []
    index = NameIndex.build(dataset)
    if args.from_file:
        logger.success(f"Input loaded: {len(dataset)} record(s)", category=LogCategory.PLAN, source=LogSource.DATASET)

    logger.step(f"Category: {args.category} ({', '.join(langs)})", category=LogCategory.CATEGORY,
                source=LogSource.WIKIPEDIA)
    category = wiki_client.get_category_info(lang, args.category)
    if category is None:
        raise CategoryNotFoundError(lang, args.category)

    tag = wiki_client.fetch_category_tag(lang, category, langs)
    logger.info(f"Tag: {tag}", category=LogCategory.CATEGORY, source=LogSource.WIKIPEDIA)

    members = wiki_client.iter_member_records(lang, category, langs)
    stats = reconcile_members(dataset, index, members, tag, lang, langs)

    save_dataset(dataset, args.to_file)
    logger.success(
        f"Merged {stats.merged} (already tagged {stats.already_tagged}), added {stats.added}; "
        f"{len(dataset)} record(s) total",
        category=LogCategory.SAVE,
    )


def run_update(args: argparse.Namespace) -> None:
    """
    Select records by soft-match patterns and apply the edit actions to them.
    """
    if not args.from_file:
        raise UsageError("Option --from FILE is required.")

    actions = collect_actions(args)
    if not actions:
        raise UsageError("You must specify one of the options --add JSON, --change JSON, --delete JSON or --remove.")
    if not args.find:
        raise UsageError("Use --find '{}' to perform an action on all elements.")

    patterns = [parse_json_option(text, "find") for text in args.find]
    validate_patterns(patterns)
    check_actions(actions)

    dataset = load_dataset(args.from_file)
    if not dataset:
        raise UsageError("In the incoming file data is missing.")
    logger.success(f"Input loaded: {len(dataset)} record(s)", category=LogCategory.PLAN, source=LogSource.DATASET)

    targets = find_matches(dataset, patterns)
    logger.step(f"{len(targets)} record(s) selected", category=LogCategory.QUERY)
    for position in targets:
        line = describe_record(position, dataset[position])
        # stdout carries the dataset itself when no --to file is given
        if writes_to_stdout(args.to_file):
            logger.info(line, category=LogCategory.MATCH)
        else:
            sys.stdout.write(line + "\n")

    changed = apply_actions(dataset, targets, actions)

    save_dataset(dataset, args.to_file)
    logger.success(f"{changed} record(s) changed", category=LogCategory.SAVE)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse the command line, run the requested workflow and translate any
    failure into an exit code: usage errors, remote errors, a missing category
    and dataset I/O errors each get their own.
    """
    args = build_parser().parse_args(argv)

    logger.set_verbose(args.verbose)
    if args.log_file:
        logger.set_log_file(args.log_file)

    try:
        if args.command == "load":
            run_load(args)
        else:
            run_update(args)
    except WikiAuthorsError as e:
        logger.error(str(e), category=LogCategory.ERROR)
        return e.exit_code
    finally:
        logger.close()

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
