from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ReportFormat:
    """
    Constants identifying one supported report layout.

    ``version`` is the ``major.minor`` prefix the report declares, any patch
    level is accepted. ``data_headers`` is the literal header row of the data
    table, as it appears after extraction (``&nbsp;`` already decoded).
    """

    application: str
    version: str
    data_headers: tuple[str, ...]

    @property
    def version_prefix(self) -> str:
        return f"{self.application} version {self.version}"

    @property
    def name(self) -> str:
        return f"{self.application}-{self.version}"


# breseq mutation predictions, index.html of a 0.27.x run.
# See: http://barricklab.org/twiki/pub/Lab/ToolsBacterialGenomeResequencing/documentation/output.html
BRESEQ_0_27 = ReportFormat(
    application="breseq",
    version="0.27",
    data_headers=(
        "evidence",
        "seq\u00a0id",
        "position",
        "mutation",
        "freq",
        "annotation",
        "gene",
        "description",
    ),
)

REPORT_FORMATS: dict[tuple[str, str], ReportFormat] = {
    (BRESEQ_0_27.application, BRESEQ_0_27.version): BRESEQ_0_27,
}
