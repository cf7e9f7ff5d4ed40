"""Test the roadmap catalog: lookups, kind inference and construction checks.

Coverage: Catalog, Catalog.from_dict, default_catalog
"""

import copy

import pytest

from cc_core_lib.core import (
    LITIGATION_ROADMAP,
    LITIGATION_TRANSITION_SUBSTAGE_ID,
    TRIAL_TRANSITION_SUBSTAGE_ID,
    Catalog,
)
from cc_core_lib.exceptions import NotFoundError
from cc_core_lib.models import CasePhase, SubstageKind
from tests.conftest import EXAMPLE_ROADMAP

# ============================================================================
# Default roadmap
# ============================================================================


class TestDefaultCatalog:
    def test_stage_order(self, catalog):
        assert [stage.id for stage in catalog.stages] == [
            "pre-litigation",
            "complaint-filed",
            "discovery",
            "depositions",
            "mediation",
            "trial-prep",
            "trial",
            "settlement",
            "case-resolved",
        ]

    def test_phase_membership(self, catalog):
        assert [stage.id for stage in catalog.stages_in_phase(CasePhase.PRE_LITIGATION)] == [
            "pre-litigation"
        ]
        assert [stage.id for stage in catalog.stages_in_phase("trial")] == [
            "trial", "settlement", "case-resolved"
        ]
        assert len(catalog.stages_in_phase(CasePhase.LITIGATION)) == 5

    def test_transition_substages(self, catalog):
        assert catalog.transition_substage_id(CasePhase.PRE_LITIGATION) is None
        assert catalog.transition_substage_id(CasePhase.LITIGATION) == LITIGATION_TRANSITION_SUBSTAGE_ID
        assert catalog.transition_substage_id(CasePhase.TRIAL) == TRIAL_TRANSITION_SUBSTAGE_ID
        assert catalog.stage_for_substage("cf-2").id == "complaint-filed"
        assert catalog.stage_for_substage("trial-1").id == "trial"

    def test_substage_kinds(self, catalog):
        assert catalog.get_substage("pre-1").kind == SubstageKind.UPLOAD_REQUIRED
        assert catalog.get_substage("pre-1").accepted_formats == ["PDF", "JPG", "PNG"]
        assert catalog.get_substage("pre-6").kind == SubstageKind.DATA_ENTRY_REQUIRED
        assert catalog.get_substage("pre-7").kind == SubstageKind.DATA_ENTRY_REQUIRED
        assert catalog.get_substage("cf-1").kind == SubstageKind.SIMPLE

    def test_coin_values(self, catalog):
        complaint = catalog.get_stage("complaint-filed")
        assert complaint.bonus_coins == 32
        assert [substage.coins for substage in complaint.substages] == [8, 10, 7, 7]
        assert catalog.get_stage("pre-litigation").total_coins == 125 + 100

    def test_default_catalog_is_shared(self, catalog):
        from cc_core_lib.core import default_catalog

        assert default_catalog() is catalog


# ============================================================================
# Lookups
# ============================================================================


class TestLookups:
    def test_unknown_stage(self, example_catalog):
        with pytest.raises(NotFoundError) as exc_info:
            example_catalog.get_stage("nope")
        assert exc_info.value.entity == "stage"
        assert exc_info.value.entity_id == "nope"

    def test_unknown_substage(self, example_catalog):
        with pytest.raises(NotFoundError) as exc_info:
            example_catalog.get_substage("cf-99")
        assert exc_info.value.entity == "substage"

    def test_member_substage_of_other_stage(self, example_catalog):
        with pytest.raises(NotFoundError, match="not part of stage"):
            example_catalog.get_member_substage("pre-litigation", "cf-1")

    def test_member_substage(self, example_catalog):
        substage = example_catalog.get_member_substage("complaint-filed", "cf-1")
        assert substage.coins == 50

    def test_unknown_phase_string(self, example_catalog):
        with pytest.raises(NotFoundError):
            example_catalog.stages_in_phase("appeal")

    def test_has_unit(self, example_catalog):
        assert example_catalog.has_unit("complaint-filed")
        assert example_catalog.has_unit("cf-1")
        assert not example_catalog.has_unit("daily-bonus")

    def test_iter_substages(self, example_catalog):
        assert [substage.id for substage in example_catalog.iter_substages()] == [
            "pre-1", "pre-6", "cf-1", "cf-2", "trial-1", "trial-2",
        ]


# ============================================================================
# Construction checks
# ============================================================================


class TestConstruction:
    def test_explicit_kind_wins(self):
        data = copy.deepcopy(EXAMPLE_ROADMAP)
        data["stages"][0]["substages"][0]["kind"] = "simple"
        catalog = Catalog.from_dict(data)
        assert catalog.get_substage("pre-1").kind == SubstageKind.SIMPLE

    def test_duplicate_substage_id_rejected(self):
        data = copy.deepcopy(EXAMPLE_ROADMAP)
        data["stages"][2]["substages"].append({"id": "cf-1", "name": "Dup", "coins": 1})
        with pytest.raises(ValueError, match="Duplicate unit id"):
            Catalog.from_dict(data)

    def test_stage_and_substage_share_namespace(self):
        data = copy.deepcopy(EXAMPLE_ROADMAP)
        data["stages"][1]["substages"].append({"id": "trial", "name": "Clash", "coins": 1})
        with pytest.raises(ValueError, match="Duplicate unit id"):
            Catalog.from_dict(data)

    def test_missing_phase_definition(self):
        data = copy.deepcopy(EXAMPLE_ROADMAP)
        data["phases"] = data["phases"][:2]
        with pytest.raises(ValueError, match="missing phase"):
            Catalog.from_dict(data)

    def test_unknown_transition_substage(self):
        data = copy.deepcopy(EXAMPLE_ROADMAP)
        data["phases"][2]["transition_substage_id"] = "trial-99"
        with pytest.raises(ValueError, match="trial-99"):
            Catalog.from_dict(data)

    def test_negative_coins_rejected(self):
        data = copy.deepcopy(EXAMPLE_ROADMAP)
        data["stages"][1]["substages"][0]["coins"] = -5
        with pytest.raises(ValueError):
            Catalog.from_dict(data)

    def test_default_roadmap_dict_untouched(self):
        before = copy.deepcopy(LITIGATION_ROADMAP)
        Catalog.from_dict(LITIGATION_ROADMAP)
        assert LITIGATION_ROADMAP == before
