"""Text rendering of classification reports."""

from rich.console import Console
from rich.markup import escape

from .errors import ReporterError
from .models import ClassificationReport, ManifestFile

UP_TO_DATE = "All dependencies up to date."


def format_report(report: ClassificationReport, title: str, markup: bool = False) -> str:
    """Format a classification report as text.

    Args:
        report: Dependencies per group
        title: Title line, usually the manifest path
        markup: Add rich colour markup

    Returns:
        Report text, one line per group and package
    """

    def style(text: str, tag: str) -> str:
        return f"[{tag}]{escape(text)}[/{tag}]" if markup else text

    lines = [style(title, "bold")]
    groups = [group for group, deps in report.items() if deps]

    if not groups:
        lines.append(style(f"  {UP_TO_DATE}", "green"))
        return "\n".join(lines)

    for group in groups:
        lines.append(escape(group) if markup else group)
        for name, record in report[group].items():
            lines.append(
                "  {} {{ required: {}, stable: {}, latest: {} }}".format(
                    style(name, "magenta"),
                    style(record.required or "*", "red"),
                    style(record.stable or "none", "green"),
                    style(str(record.latest), "yellow"),
                )
            )

    return "\n".join(lines)


class ConsoleReporter:
    """Print outdated dependencies to the console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def log(self, file: ManifestFile) -> None:
        """Print the outdated dependencies attached to a file.

        Raises:
            ReporterError: the file has not been checked yet
        """
        if file.outdated is None:
            raise ReporterError("Dependencies not found.")
        self.console.print(format_report(file.outdated, file.path, markup=True), highlight=False)
