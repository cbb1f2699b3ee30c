import sys

from harness import CategoryReport


class Reporter:
    """Prints bordered category blocks with one PASS/FAIL line per probe."""

    WIDTH = 70
    LABEL_WIDTH = 60

    def __init__(self, stream=None, verbose: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.verbose = verbose

    def _print(self, line: str = "") -> None:
        print(line, file=self.stream)

    def category(self, report: CategoryReport) -> None:
        self._print("=" * self.WIDTH)
        self._print(f"{report.category.key}. {report.category.title}")
        self._print("-" * self.WIDTH)

        for result in report.results:
            token = "PASS" if result.passed else "FAIL"
            self._print(f"{result.description:<{self.LABEL_WIDTH}}  [{token}]")
            if self.verbose and not result.passed:
                self._print(f"    {result.detail}")

        self._print("-" * self.WIDTH)
        self._print(f"{report.passed}/{len(report.results)} passed")
        self._print("=" * self.WIDTH)
        self._print()

    def summary(self, reports: list[CategoryReport]) -> None:
        total = sum(len(r.results) for r in reports)
        passed = sum(r.passed for r in reports)
        self._print(f"TOTAL: {passed}/{total} probes passed")

    def report(self, reports: list[CategoryReport]) -> None:
        for report in reports:
            self.category(report)
        self.summary(reports)
