"""Shared test fixtures."""

import mlflow
import pytest


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests — no side effects, no mlruns/ writes."""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()


# ---------------------------------------------------------------------------
# Synthetic Docs API documents
# ---------------------------------------------------------------------------

def _paragraph(start: int, text: str) -> dict:
    end = start + len(text.encode("utf-16-le")) // 2
    return {
        "startIndex": start,
        "endIndex": end,
        "paragraph": {
            "elements": [{"startIndex": start, "endIndex": end, "textRun": {"content": text}}],
        },
    }


def build_document(*paragraphs: str, start: int = 1) -> dict:
    """documents.get-shaped body with one single-run paragraph per string."""
    content = [{"startIndex": 0, "endIndex": start, "sectionBreak": {}}]
    index = start
    for text in paragraphs:
        element = _paragraph(index, text)
        content.append(element)
        index = element["endIndex"]
    return {"documentId": "doc-1", "body": {"content": content}}


def build_table(start: int, rows: int, columns: int) -> dict:
    """A table element laid out the way Docs lays out an empty table.

    Row markers and cell markers each take one index; an empty cell holds a
    single newline paragraph starting at cellStart + 1.
    """
    index = start + 1
    table_rows = []
    for _ in range(rows):
        index += 1
        cells = []
        for _ in range(columns):
            cells.append({
                "startIndex": index,
                "endIndex": index + 2,
                "content": [_paragraph(index + 1, "\n")],
            })
            index += 2
        table_rows.append({"tableCells": cells})
    return {
        "startIndex": start,
        "endIndex": index + 1,
        "table": {"rows": rows, "columns": columns, "tableRows": table_rows},
    }


class FakeDocsClient:
    """Stands in for GoogleWorkspaceClient's Docs calls.

    get_document() serves the scripted snapshots in order and keeps serving
    the last one; batch_update() records each batch.
    """

    def __init__(self, *documents: dict):
        self.documents = list(documents)
        self.batches: list[list[dict]] = []
        self.get_calls = 0

    async def get_document(self, document_id: str) -> dict:
        self.get_calls += 1
        if len(self.documents) > 1:
            return self.documents.pop(0)
        return self.documents[0]

    async def batch_update(self, document_id: str, requests: list[dict]) -> dict:
        self.batches.append(list(requests))
        return {}


@pytest.fixture
def make_document():
    return build_document


@pytest.fixture
def make_table():
    return build_table


@pytest.fixture
def fake_docs():
    return FakeDocsClient
