"""Render structured decision records as MADR-style Markdown."""

import io
from dataclasses import dataclass

DEFAULT_TITLE = "New ADR"


@dataclass(frozen=True)
class AdrDocument:
    """The structured content of a decision record."""

    title: str
    status: str = ""
    deciders: str = ""
    date: str = ""
    context_and_problem_statement: str = ""
    decision_drivers: tuple[str, ...] = ()
    considered_options: tuple[str, ...] = ()
    chosen_option: str = ""
    explanation: str = ""
    positive_consequences: tuple[str, ...] = ()
    negative_consequences: tuple[str, ...] = ()
    links: tuple[str, ...] = ()


def new_adr_document() -> AdrDocument:
    """Return the content every freshly created ADR starts with."""
    return AdrDocument(title=DEFAULT_TITLE)


def _bullets(out: io.StringIO, items: tuple[str, ...]) -> None:
    for item in items:
        print(f"* {item}", file=out)
    if items:
        print(file=out)


def adr_to_md(doc: AdrDocument) -> str:
    """Render ``doc`` as Markdown.

    Optional sections are left out when empty; the title, problem statement,
    considered options and decision outcome are always present so the editor
    has somewhere to type.
    """
    out = io.StringIO()
    print(f"# {doc.title}", file=out)
    print(file=out)

    metadata = [
        ("Status", doc.status),
        ("Deciders", doc.deciders),
        ("Date", doc.date),
    ]
    metadata = [(k, v) for k, v in metadata if v]
    if metadata:
        for key, value in metadata:
            print(f"* {key}: {value}", file=out)
        print(file=out)

    print("## Context and Problem Statement", file=out)
    print(file=out)
    if doc.context_and_problem_statement:
        print(doc.context_and_problem_statement, file=out)
        print(file=out)

    if doc.decision_drivers:
        print("## Decision Drivers", file=out)
        print(file=out)
        _bullets(out, doc.decision_drivers)

    print("## Considered Options", file=out)
    print(file=out)
    _bullets(out, doc.considered_options)

    print("## Decision Outcome", file=out)
    print(file=out)
    chosen = f'Chosen option: "{doc.chosen_option}"'
    if doc.explanation:
        chosen += f", because {doc.explanation}"
    print(chosen, file=out)
    print(file=out)

    if doc.positive_consequences:
        print("### Positive Consequences", file=out)
        print(file=out)
        _bullets(out, doc.positive_consequences)
    if doc.negative_consequences:
        print("### Negative Consequences", file=out)
        print(file=out)
        _bullets(out, doc.negative_consequences)

    if doc.links:
        print("## Links", file=out)
        print(file=out)
        _bullets(out, doc.links)

    return out.getvalue().rstrip("\n") + "\n"
