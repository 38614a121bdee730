"""Command-line entry point for QuizMe."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import Callable, Sequence

from rich.console import Console

from .catalog.authoring import (
    AuthoringError,
    add_manual_question,
    build_manual_draft,
    require_location,
)
from .catalog.catalog import QuestionCatalog
from .config import (
    CONFIG_FILENAME,
    AIBackend,
    ConfigOverrides,
    LoadResult,
    QuizMeConfig,
    QuizMeConfigError,
    load_config,
    template_text,
)
from .core import workspace as workspace_mod
from .core.config import TomlConfigError, write_toml_template
from .core.logging import configure_logger
from .core.workspace import WorkspaceError
from .gateway.backends import (
    CompletionBackend,
    GatewayError,
    OpenAIBackend,
    ProxyBackend,
)
from .gateway.drafts import DraftBatch
from .gateway.gateway import AIGateway
from .quiz.controller import QuizSessionController, SessionError
from .store import QuizStore, StoreError
from .views.authoring import review_drafts
from .views.library import render_library, render_setup
from .views.results import render_attempt, render_history
from .views.taker import InputProvider, run_taker

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

LOGGER_NAME = "quizme"


@dataclass
class Runtime:
    """Objects shared by the commands of a single invocation."""

    config: QuizMeConfig
    layout: workspace_mod.WorkspaceLayout
    store: QuizStore
    catalog: QuestionCatalog
    console: Console
    logger: logging.Logger
    log_path: Path

    def controller(self) -> QuizSessionController:
        return QuizSessionController(
            self.store,
            rng=random.Random(),
            practice_limit=self.config.practice_limit,
            logger=self.logger,
        )

    def gateway(self) -> AIGateway:
        return AIGateway(build_backend(self.config), logger=self.logger)


def _package_version() -> str:
    try:
        return metadata.version("quizme")
    except metadata.PackageNotFoundError:
        return "unknown"


def make_console() -> Console:
    return Console()


def make_input_provider(console: Console) -> InputProvider:
    return lambda: console.input("[bold]> [/]")


def build_backend(config: QuizMeConfig) -> CompletionBackend:
    ai = config.ai
    if ai.backend is AIBackend.OPENAI:
        return OpenAIBackend(
            model=ai.model,
            temperature=ai.temperature,
            max_tokens=ai.max_tokens,
        )
    return ProxyBackend(
        ai.proxy_url,
        model=ai.model,
        temperature=ai.temperature,
        max_tokens=ai.max_tokens,
        timeout=ai.timeout,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizme",
        description=(
            "Author question sets, take quizzes and review your results."
        ),
        epilog=(
            "Run `quizme config init` to scaffold the default quizme.toml "
            "template."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (defaults to ~/.quizme-data).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config file.",
    )
    parser.add_argument(
        "--backend",
        choices=[member.value for member in AIBackend],
        help="Where AI requests are sent.",
    )
    parser.add_argument("--model", help="Model name for AI requests.")
    parser.add_argument("--proxy-url", help="Proxy endpoint URL.")
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo log records to stderr.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Bootstrap the QuizMe workspace.")
    sub.add_parser("library", help="Show subjects, chapters and counts.")

    sp_add = sub.add_parser("add", help="Add one question by hand.")
    _add_location_arguments(sp_add, required=True)
    sp_add.add_argument("--text", required=True, help="Question text.")
    sp_add.add_argument(
        "--type",
        dest="question_type",
        default="MULTIPLE_CHOICE",
        help="MULTIPLE_CHOICE, TRUE_FALSE or FILL_IN_THE_BLANK.",
    )
    sp_add.add_argument("--answer", required=True, help="Correct answer.")
    sp_add.add_argument("--topic", default="", help="Topic label.")
    sp_add.add_argument(
        "--option",
        dest="options",
        action="append",
        default=[],
        help="Answer option (repeat four times for multiple choice).",
    )

    sp_gen = sub.add_parser(
        "generate", help="Generate questions from text with AI."
    )
    _add_location_arguments(sp_gen, required=True)
    source = sp_gen.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read source text here.")
    source.add_argument("--text", help="Source text passed inline.")
    sp_gen.add_argument(
        "--count",
        type=int,
        help="Number of questions to request (1-20).",
    )

    sp_take = sub.add_parser("take", help="Take or resume a quiz.")
    _add_location_arguments(sp_take, required=False)
    mode = sp_take.add_mutually_exclusive_group()
    mode.add_argument(
        "--random",
        action="store_true",
        help="Random practice drawn from the whole library.",
    )
    mode.add_argument(
        "--resume",
        action="store_true",
        help="Continue the unfinished quiz.",
    )

    sub.add_parser("abandon", help="Discard the unfinished quiz.")

    sp_res = sub.add_parser("results", help="Show the latest result.")
    sp_res.add_argument(
        "--explain",
        action="store_true",
        help="Ask the AI to explain each incorrect answer.",
    )
    sp_res.add_argument(
        "--history",
        action="store_true",
        help="List every submitted attempt instead.",
    )

    sp_proxy = sub.add_parser("proxy", help="Run the credential proxy.")
    sp_proxy.add_argument("--host", help="Bind address.")
    sp_proxy.add_argument("--port", type=int, help="Bind port.")
    return parser


def _add_location_arguments(
    parser: argparse.ArgumentParser, *, required: bool
) -> None:
    parser.add_argument("--subject", required=required, help="Subject name.")
    parser.add_argument("--chapter", required=required, help="Chapter name.")


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = build_arg_parser()
    args = parser.parse_args(args_list)

    overrides = ConfigOverrides(
        backend=AIBackend.from_value(args.backend) if args.backend else None,
        proxy_url=args.proxy_url,
        model=args.model,
        log_level=args.log_level,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except (QuizMeConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return EXIT_USAGE

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=args.verbose,
    )
    logger.debug("quizme CLI invoked", extra={"command": args.command})

    try:
        runtime = _build_runtime(load_result, logger, log_path)
        return _dispatch(args, runtime)
    except (AuthoringError, SessionError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return EXIT_USAGE
    except (GatewayError, StoreError) as exc:
        logger.error(
            "Command failed",
            extra={"command": args.command, "reason": str(exc)},
        )
        sys.stderr.write(f"Error: {exc}\n")
        return EXIT_FAILURE


def _build_runtime(
    load_result: LoadResult, logger: logging.Logger, log_path: Path
) -> Runtime:
    store = QuizStore(load_result.layout.path_for("store"))
    return Runtime(
        config=load_result.config,
        layout=load_result.layout,
        store=store,
        catalog=QuestionCatalog(store, logger=logger),
        console=make_console(),
        logger=logger,
        log_path=log_path,
    )


def _dispatch(args: argparse.Namespace, runtime: Runtime) -> int:
    handlers: dict[str, Callable[[argparse.Namespace, Runtime], int]] = {
        "init": _cmd_init,
        "library": _cmd_library,
        "add": _cmd_add,
        "generate": _cmd_generate,
        "take": _cmd_take,
        "abandon": _cmd_abandon,
        "results": _cmd_results,
        "proxy": _cmd_proxy,
    }
    return handlers[args.command](args, runtime)


def _cmd_init(args: argparse.Namespace, runtime: Runtime) -> int:
    layout = runtime.layout
    runtime.console.print(f"Workspace ready at {layout.home}")
    for name, path in layout.items():
        state = "created" if layout.created.get(name) else "exists"
        runtime.console.print(f"  {name:<7} {path} ({state})")
    return EXIT_OK


def _cmd_library(args: argparse.Namespace, runtime: Runtime) -> int:
    render_library(runtime.console, runtime.catalog)
    return EXIT_OK


def _cmd_add(args: argparse.Namespace, runtime: Runtime) -> int:
    try:
        draft = build_manual_draft(
            text=args.text,
            question_type=args.question_type,
            answer=args.answer,
            topic=args.topic,
            options=args.options or None,
        )
    except ValueError as exc:
        raise AuthoringError(str(exc)) from exc
    question = add_manual_question(
        runtime.catalog, args.subject, args.chapter, draft
    )
    runtime.console.print(
        f"Added question {question.id} to "
        f"{args.subject.strip()} / {args.chapter.strip()}."
    )
    return EXIT_OK


def _cmd_generate(args: argparse.Namespace, runtime: Runtime) -> int:
    subject, chapter = require_location(args.subject, args.chapter)
    if args.file is not None:
        try:
            source_text = args.file.read_text(encoding="utf-8")
        except OSError as exc:
            sys.stderr.write(f"Error: cannot read {args.file}: {exc}\n")
            return EXIT_USAGE
    else:
        source_text = args.text
    if not source_text.strip():
        raise AuthoringError("Source text is empty.")
    count = args.count or runtime.config.generate_count
    if not 1 <= count <= 20:
        raise AuthoringError("--count must be between 1 and 20.")

    console = runtime.console
    batch = DraftBatch()
    ticket = batch.tracker.issue()
    with console.status("Generating questions..."):
        drafts = runtime.gateway().generate_questions(source_text, count)
    batch.replace(drafts, ticket)

    decision = review_drafts(console, batch, make_input_provider(console))
    if decision == "discard":
        console.print("Drafts discarded.")
        return EXIT_OK
    created = batch.commit(runtime.catalog, subject, chapter)
    console.print(
        f"Saved {len(created)} question(s) to {subject} / {chapter}."
    )
    return EXIT_OK


def _cmd_take(args: argparse.Namespace, runtime: Runtime) -> int:
    controller = runtime.controller()
    console = runtime.console
    catalog = runtime.catalog

    if args.resume:
        controller.resume()
    elif args.random:
        pool = catalog.all_questions()
        if not pool:
            raise SessionError("The library has no questions yet.")
        controller.start_random_practice(pool)
    elif args.subject or args.chapter:
        subject, chapter_name = require_location(
            args.subject or "", args.chapter or ""
        )
        chapter = catalog.find_chapter(subject, chapter_name)
        if chapter is None:
            raise SessionError(
                f"No chapter named '{chapter_name}' in '{subject}'."
            )
        controller.start_quiz(chapter.questions)
    else:
        controller.begin_selection()
        render_setup(console, catalog, controller.active_session)
        return EXIT_OK

    result = run_taker(controller, console, make_input_provider(console))
    if result.attempt is not None:
        render_attempt(console, result.attempt)
    return EXIT_OK


def _cmd_abandon(args: argparse.Namespace, runtime: Runtime) -> int:
    controller = runtime.controller()
    if controller.active_session is None:
        runtime.console.print("There is no unfinished quiz.")
        return EXIT_OK
    controller.abandon()
    runtime.console.print("Unfinished quiz discarded.")
    return EXIT_OK


def _cmd_results(args: argparse.Namespace, runtime: Runtime) -> int:
    if args.history:
        render_history(runtime.console, runtime.store.load_attempts())
        return EXIT_OK
    attempt = runtime.store.latest_attempt()
    if attempt is None:
        runtime.console.print("No quizzes have been submitted yet.")
        return EXIT_OK
    explain = runtime.gateway().explain_answer if args.explain else None
    render_attempt(runtime.console, attempt, explain=explain)
    return EXIT_OK


def _cmd_proxy(args: argparse.Namespace, runtime: Runtime) -> int:
    # Imported lazily so other commands do not load the ASGI stack.
    from .proxy import serve

    host = args.host or runtime.config.proxy_host
    port = args.port or runtime.config.proxy_port
    runtime.logger.info("Starting proxy", extra={"host": host, "port": port})
    serve(host, port, logger=runtime.logger)
    return EXIT_OK


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)
    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizme config",
        description="Manage QuizMe configuration files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default quizme.toml template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Workspace root override used when resolving the default config "
            "path."
        ),
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return EXIT_FAILURE

    try:
        written = write_toml_template(
            target, template=template_text(), overwrite=args.force
        )
    except (TomlConfigError, QuizMeConfigError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return EXIT_FAILURE

    sys.stdout.write(f"Wrote quizme config to {written}\n")
    return EXIT_OK


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate: Path = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
