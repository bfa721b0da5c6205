"""Command-line interface for codepaste.

This module defines the CLI for codepaste, which dumps a project's source files
(and optionally its manifest and README) into one text ready to paste into
ChatGPT, Claude, or similar large language models.

The CLI favors a copy-to-clipboard workflow; `--print` writes to stdout instead,
and a failed clipboard copy falls back to stdout. With `--functions` the user
picks functions in an interactive checklist and the bodies of everything else
are elided.
"""

import shlex
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from codepaste import __version__
from codepaste.config import Config, Language, write_default_config
from codepaste.core import CodePaster
from codepaste.explain import build_prompt, default_command, run_check
from codepaste.selector import interactive_select
from codepaste.utils import copy_to_clipboard, detect_language

console = Console(stderr=True)


def selection_options(f):
    """Decorator to add the function selection options.

    Adds:
        - `-f/--functions`: Pick functions interactively.
        - `--only`: Keep only the selected functions.
        - `--all`: Select every function and include manifest and README.

    Args:
        f (function): Function to decorate.

    Returns:
        function: Decorated function with selection options added.
    """
    f = click.option(
        "-f",
        "--functions",
        is_flag=True,
        help="Use interactive mode to select functions/methods; other bodies are elided.",
    )(f)
    f = click.option(
        "--only",
        is_flag=True,
        help=(
            "Include only the selected functions "
            "(excludes imports, structs, traits, manifest and README). Requires --functions."
        ),
    )(f)
    f = click.option(
        "--all",
        "all_",
        is_flag=True,
        help="Include manifest and README, and select all functions (no filtering/elision).",
    )(f)
    return f


def content_options(f):
    """Decorator to add options controlling which extra files are included.

    Args:
        f (function): Function to decorate.

    Returns:
        function: Decorated function with content options added.
    """
    f = click.option(
        "--readme",
        is_flag=True,
        help="Include README files (README.md, README.txt, etc.).",
    )(f)
    f = click.option(
        "--toml",
        "--manifest",
        "manifest",
        is_flag=True,
        help="Include the project manifest (Cargo.toml or pyproject.toml).",
    )(f)
    f = click.option(
        "--exclude",
        multiple=True,
        help="Glob pattern(s) for files or folders to leave out.",
    )(f)
    return f


def config_options(f):
    """Decorator to add config file options.

    Args:
        f (function): Function to decorate.

    Returns:
        function: Decorated function with config options added.
    """
    f = click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False, path_type=Path),
        help="Path to config file (defaults to ./codepaste.json or ~/.config/codepaste/config.json).",
    )(f)
    f = click.option(
        "--generate-config",
        is_flag=True,
        help="Generate default config file and exit.",
    )(f)
    return f


def output_options(f):
    """Decorator to add output related options.

    Args:
        f (function): Function to decorate.

    Returns:
        function: Decorated function with output options added.
    """
    f = click.option(
        "--print",
        "print_output",
        is_flag=True,
        help="Write to stdout instead of copying to the clipboard.",
    )(f)
    f = click.option(
        "--count-tokens",
        is_flag=True,
        help="Count tokens with tiktoken instead of estimating from the text length.",
    )(f)
    f = click.option(
        "--model-encoding",
        type=click.Choice(["cl100k_base", "o200k_base"], case_sensitive=False),
        default="o200k_base",
        show_default=True,
        help="Tokenizer encoding used by --count-tokens.",
    )(f)
    return f


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="codepaste")
@click.option(
    "-C",
    "--directory",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=".",
    show_default=True,
    help="Project root to dump.",
)
@click.option(
    "-l",
    "--language",
    type=click.Choice([lang.value for lang in Language], case_sensitive=False),
    help="Explicit project language (overrides auto-detection).",
)
@selection_options
@content_options
@config_options
@output_options
@click.option("-v", "--verbose", is_flag=True, help="Print diagnostic messages.")
@click.pass_context
def main(
    ctx: click.Context,
    directory: Path,
    language: str | None,
    functions: bool,
    only: bool,
    all_: bool,
    readme: bool,
    manifest: bool,
    exclude: tuple[str, ...],
    config_path: Path | None,
    generate_config: bool,
    print_output: bool,
    count_tokens: bool,
    model_encoding: str,
    verbose: bool,
) -> None:
    """Dump your project contents into a format which can be passed to an LLM.

    Source files are emitted as fenced code blocks, each starting with a
    comment holding its path. The result is copied to the clipboard unless
    --print is given.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(
        directory=directory,
        language=language,
        print_output=print_output,
        verbose=verbose,
    )
    if ctx.invoked_subcommand:
        return

    if only and not functions:
        raise click.UsageError("--only flag requires --functions flag")

    try:
        run_cli(
            directory=directory,
            language=language,
            functions=functions,
            only=only,
            all_=all_,
            readme=readme,
            manifest=manifest,
            exclude=exclude,
            config_path=config_path,
            generate_config=generate_config,
            print_output=print_output,
            count_tokens=count_tokens,
            model_encoding=model_encoding,
            verbose=verbose,
        )
    except (click.ClickException, click.Abort):
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


def run_cli(
    directory: Path,
    language: str | None,
    functions: bool,
    only: bool,
    all_: bool,
    readme: bool,
    manifest: bool,
    exclude: tuple[str, ...],
    config_path: Path | None,
    generate_config: bool,
    print_output: bool,
    count_tokens: bool,
    model_encoding: str,
    verbose: bool,
) -> None:
    """Run main CLI workflow.

    Args:
        directory: Project root path.
        language: Programming language override or auto-detect.
        functions: Select functions interactively.
        only: Emit only the selected functions.
        all_: Include manifest and README, select every function.
        readme: Include README files.
        manifest: Include the manifest file.
        exclude: Glob patterns for excluded files.
        config_path: Config file path, None for default locations.
        generate_config: Write the default config and stop.
        print_output: Write to stdout instead of the clipboard.
        count_tokens: Count tokens with tiktoken.
        model_encoding: Tokenizer encoding.
        verbose: Print diagnostic messages.
    """
    if generate_config:
        written = write_default_config(config_path)
        console.print(f"[green]✓[/green] Generated config file at: [bold]{escape(str(written))}[/bold]")
        console.print("You can edit this file to customize which files to include.")
        return

    config = Config.from_file(config_path)
    config.exclude_patterns.extend(exclude)

    lang_enum = Language((language or _detect_language_or_exit(directory)).lower())
    paster = CodePaster(
        directory,
        lang_enum,
        config,
        include_manifest=all_ or manifest or bool(config.manifest),
        include_readme=all_ or readme or bool(config.readme),
        model_encoding=model_encoding if count_tokens else None,
    )

    selected = None
    if functions:
        selected = _select_functions(paster, all_, verbose)
        if selected is None:
            return
        if not selected:
            console.print("[yellow]No functions selected.[/yellow]")
            return

    paste = paster.create_paste(selected, only=only)
    for warning in paste.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")

    if not paste.content:
        console.print("[yellow]No content generated with the current selection.[/yellow]")
        return

    _handle_output(paste.content, print_output)
    console.print(f"{paste.file_count} files, approximately {paste.token_count:,} tokens")


def _detect_language_or_exit(path: Path) -> str:
    """Detect or exit if language cannot be determined.

    Args:
        path: Project root.

    Returns:
        str: Detected language string.

    Raises:
        SystemExit: If detection fails.
    """
    detected_lang = detect_language(path)
    if not detected_lang:
        console.print(
            "[red]Error:[/red] Could not detect language. Specify with -l/--language."
        )
        sys.exit(1)
    return detected_lang


def _select_functions(paster: CodePaster, select_all: bool, verbose: bool) -> list[str] | None:
    """Collect functions and let the user choose among them.

    Args:
        paster: Paster for the project.
        select_all: Skip the prompt and select everything.
        verbose: Print diagnostic messages.

    Returns:
        list[str] | None: Selected display names, None when there is nothing to select.
    """
    functions = paster.collect_functions()
    for warning in paster.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
    paster.warnings.clear()

    if not functions:
        console.print(f"[yellow]No functions found in {paster.language.title} files.[/yellow]")
        return None

    names = [f.display_name for f in functions]
    if verbose:
        console.print(f"[dim]Found {len(names)} functions[/dim]")
    if select_all:
        return names
    return interactive_select(names, console)


def _handle_output(text: str, print_output: bool) -> None:
    """Send text to stdout or the clipboard.

    If the clipboard is unavailable the text is written to stdout instead.

    Args:
        text: Text to emit.
        print_output: If true, write to stdout without touching the clipboard.
    """
    if print_output:
        click.echo(text)
    elif copy_to_clipboard(text):
        console.print(
            "[green]✓[/green] Content copied to clipboard! "
            "You can now paste it into your favorite AI assistant."
        )
    else:
        console.print("[yellow]Warning:[/yellow] Clipboard copy failed, writing to stdout.")
        click.echo(text)


@main.command()
@click.option("-c", "--context", help="Additional context to include with the errors.")
@click.option(
    "--command",
    "check_command",
    help="Checker to run instead of the language default (e.g. 'cargo clippy').",
)
@click.pass_context
def explain(ctx: click.Context, context: str | None, check_command: str | None) -> None:
    """Run the project checker and copy its errors as a prompt for an LLM."""
    try:
        run_explain(
            directory=ctx.obj["directory"],
            language=ctx.obj["language"],
            context=context,
            check_command=check_command,
            print_output=ctx.obj["print_output"],
        )
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


def run_explain(
    directory: Path,
    language: str | None,
    context: str | None,
    check_command: str | None,
    print_output: bool,
) -> None:
    """Run the checker and hand its output to the sink as a prompt.

    Args:
        directory: Project root, the checker runs there.
        language: Programming language override or auto-detect.
        context: Extra context for the prompt.
        check_command: Checker command line overriding the language default.
        print_output: Write to stdout instead of the clipboard.
    """
    lang_enum = Language((language or _detect_language_or_exit(directory)).lower())
    command = shlex.split(check_command) if check_command else default_command(lang_enum)

    console.print(f"Running {escape(' '.join(command))}...")
    output = run_check(command, directory)
    if not output:
        console.print("[green]✓[/green] No errors to explain! The check completed successfully.")
        return

    _handle_output(build_prompt(output, lang_enum, context), print_output)
    if not print_output:
        console.print("\n--- Error Output ---")
        console.print(escape(output), highlight=False)


if __name__ == "__main__":
    main()
