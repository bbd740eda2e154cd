"""
Shared pytest fixtures for the forensic QR test suite.
"""

from datetime import datetime, timezone

import pytest

from config import ConfigurationManager
from forensic_qr.sealing import EvidenceSection, PackageGenerator

FIXED_INSTANT = datetime(2026, 10, 19, 3, 10, 0, 123456, tzinfo=timezone.utc)
FIXED_ISO = "2026-10-19T03:10:00.123Z"
FIXED_ID = "3f2b9c1e-8d4a-4f6b-9a7e-1c2d3e4f5a6b"


@pytest.fixture(autouse=True)
def reset_configuration():
    """Give every test a freshly loaded configuration singleton."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def generator():
    """Generator with a fixed clock and package id."""
    return PackageGenerator(clock=lambda: FIXED_INSTANT, id_factory=lambda: FIXED_ID)


@pytest.fixture
def sealed(generator):
    """The package from the 'J. Doe' scenario, sealed."""
    return generator.generate(
        operator_name="J. Doe",
        badge_id="PHX-1",
        role="Investigator",
        evidence_source="Crime Scene A",
        sections=[EvidenceSection("evidence 1", " bloodstain sample ")]
    )


@pytest.fixture
def multi_section_sealed(generator):
    """A package with several sections, including multi-line content."""
    return generator.generate(
        operator_name="Dr. A. Rivera",
        badge_id="ME-2207",
        role="Medical Examiner",
        evidence_source="Hospital / Medical Examiner",
        location_details="Autopsy suite 3",
        sections=[
            {"title": "Toxicology", "content": "Blood alcohol: 0.08\n\nNo narcotics detected."},
            {"title": "weapon", "content": "Kitchen knife, 20cm blade"},
            {"title": "Notes", "content": ""},
        ]
    )
