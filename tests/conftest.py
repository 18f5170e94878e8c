"""Shared test fixtures for all tests."""

from __future__ import annotations

import pytest

from bibstore.core.models import DOIEntry
from bibstore.migrations import Migration, load_migrations

DOI_ENTRY_VERSION = 20230723133255
SEARCH_INDEX_VERSION = 20230729191314


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_entry() -> DOIEntry:
    """Create the sample record used by the end-to-end scenario."""
    return DOIEntry(
        cite_key="smith2023",
        bib_type="article",
        doi="10.1145/3580305.3599000",
        url="https://doi.org/10.1145/3580305.3599000",
        author="Smith, J.",
        title="Graph Algorithms",
        journal="J. Comp.",
        publisher="ACM",
        volume=12,
        number=3,
        month="aug",
        year=2023,
    )


@pytest.fixture
def other_entry() -> DOIEntry:
    """Create a second record sharing no search tokens with the sample."""
    return DOIEntry(
        cite_key="doe2021",
        bib_type="book",
        doi="10.1007/978-3-030-00000-0",
        url="https://doi.org/10.1007/978-3-030-00000-0",
        author="Doe, Ann",
        title="Protein Folding",
        journal="Nature Methods",
        publisher="Springer",
        volume=4,
        number=1,
        month="jan",
        year=2021,
    )


# ============================================================================
# Migration Fixtures
# ============================================================================


@pytest.fixture
def bundled_migrations() -> list[Migration]:
    """Load the migrations shipped with the package."""
    return load_migrations()


@pytest.fixture
def doi_entry_migration(bundled_migrations: list[Migration]) -> Migration:
    """The migration creating doi_entries."""
    return next(m for m in bundled_migrations if m.version == DOI_ENTRY_VERSION)


@pytest.fixture
def search_index_migration(bundled_migrations: list[Migration]) -> Migration:
    """The migration adding the search column and GIN index."""
    return next(m for m in bundled_migrations if m.version == SEARCH_INDEX_VERSION)
