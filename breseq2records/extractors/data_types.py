import typing
from abc import abstractmethod
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Protocol

import pandas as pd

# A row is the ordered text of its <td>/<th> cells, a table its direct rows.
Row = List[str]
Table = List[Row]


@dataclass
class FileMetadataInterface:
    filename: str | None = None
    file_extension: str | None = None
    file_path: str | None = None
    folder_path: str | None = None

    def populate_from_path(self, path: str | Path | None) -> None:
        """Populate file metadata fields from a path."""
        if path is None:
            return
        p = Path(path)
        self.filename = p.name
        self.file_extension = p.suffix
        self.file_path = str(p.resolve()) if p.exists() else str(p)
        self.folder_path = (
            str(p.parent.resolve()) if p.parent.exists() else str(p.parent)
        )

    def to_dict(self) -> dict:
        return asdict(self)


class ExtractionInterface(Protocol):
    @abstractmethod
    def iterator(self) -> typing.Iterator[str]:
        """
        Returns an iterator over the extracted text units of a report.
        Reports return one unit per record collection, rendered as
        tab-separated lines.
        """
        ...

    @abstractmethod
    def get_full_text(self) -> str:
        """Full text of the report as one single block of text"""
        ...

    @abstractmethod
    def get_metadata(self) -> FileMetadataInterface:
        """Returns the metadata of the extracted file"""
        ...


@dataclass(frozen=True)
class SequenceAnnotation:
    """
    A single row describing a mutation of a specific nucleotide sequence.

    A typical breseq 0.27 mutation prediction row looks like:

    seq_id    | position | mutation | freq | annotation            | gene     | description
    NC_012345 | 12,345   | +G       | 100% | intergenic (-123/+12) | ABC01234 | lipoprotein
    """

    # Identifies the annotation uniquely, assigned by the storage layer.
    unique_id: str = ""
    # Identifier of the reference sequence with the mutation.
    sequence_id: str = ""
    # Position of the mutation in the reference sequence.
    position: str = ""
    # Groups annotations by generation and acts as a timestamp for
    # annotations sharing a sequence id and position. Assigned downstream.
    generation: str = ""
    application: str = ""
    app_version: str = ""
    # How nucleotides are added, substituted or deleted.
    mutation: str = ""
    # Percentage of how often the mutation occurs.
    frequency: str = ""
    annotation: str = ""
    # Space-delimited list of the affected genes.
    gene: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


# Column order used when records are rendered as delimited text.
RECORD_COLUMNS = (
    "sequence_id",
    "position",
    "mutation",
    "frequency",
    "annotation",
    "gene",
    "description",
)


@dataclass
class ReportContent(ExtractionInterface):
    collections: List[List[SequenceAnnotation]] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    application: str = ""
    app_version: str = ""
    metadata: FileMetadataInterface = field(default_factory=FileMetadataInterface)

    def iterate_records(self) -> typing.Iterator[SequenceAnnotation]:
        for collection in self.collections:
            yield from collection

    def iterator(self) -> typing.Iterator[str]:
        for collection in self.collections:
            yield "\n".join(
                "\t".join(getattr(record, name) for name in RECORD_COLUMNS)
                for record in collection
            )

    def get_full_text(self) -> str:
        return "\n\n".join(self.iterator()).strip()

    def get_metadata(self) -> FileMetadataInterface:
        return self.metadata

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten all collections into one frame with a ``collection`` column."""
        columns = ["collection"] + [f.name for f in fields(SequenceAnnotation)]
        rows = [
            {"collection": index, **record.to_dict()}
            for index, collection in enumerate(self.collections)
            for record in collection
        ]
        return pd.DataFrame(rows, columns=columns)

    def to_json(self) -> dict:
        from breseq2records.extractors.serialization import serialize_extraction

        return serialize_extraction(self)
