"""Tests for the import field catalog and column mapping."""

from __future__ import annotations

from plhcc.ingestion.fields import IMPORT_TYPES, ImportType, get_fields, get_type_info
from plhcc.ingestion.mapping import (
    apply_mapping,
    auto_detect_mapping,
    normalize_header,
    reverse_mapping,
    validate_mapping,
)


class TestFieldCatalog:
    def test_every_type_has_fields(self):
        for import_type in ImportType:
            assert get_fields(import_type)

    def test_required_fields(self):
        assert IMPORT_TYPES[ImportType.PROJECTS].required_fields == ["name", "client_name"]
        assert get_type_info("tasks").required_fields == ["project_name", "task"]
        assert get_type_info("budget_items").required_fields == ["project_name", "area_name", "item_name"]
        assert get_type_info("vendors").required_fields == ["company_name"]

    def test_optional_fields_exclude_required(self):
        info = get_type_info(ImportType.VENDORS)
        assert "company_name" not in info.optional_fields
        assert "trades" in info.optional_fields


class TestNormalizeHeader:
    def test_strips_separators_and_case(self):
        assert normalize_header("Client_Name") == "clientname"
        assert normalize_header("client name") == "clientname"
        assert normalize_header("Client-Name") == "clientname"


class TestAutoDetect:
    def test_project_headers(self):
        headers = ["Project Name", "Client", "Site Address", "Budget"]

        mapping = auto_detect_mapping(headers, ImportType.PROJECTS)

        assert mapping == {
            "name": "Project Name",
            "client_name": "Client",
            "address": "Site Address",
            "total_budget": "Budget",
        }

    def test_unmatched_fields_are_absent(self):
        mapping = auto_detect_mapping(["Job", "Customer"], ImportType.PROJECTS)

        assert mapping == {"client_name": "Customer"}

    def test_each_header_feeds_one_field(self):
        headers = ["Project", "Description", "Owner"]

        mapping = auto_detect_mapping(headers, ImportType.TASKS)

        assert mapping["task"] == "Description"
        assert mapping["poc_name"] == "Owner"
        assert len(set(mapping.values())) == len(mapping)

    def test_budget_item_headers(self):
        headers = ["Project", "Area", "Description", "Budget", "Actual"]

        mapping = auto_detect_mapping(headers, ImportType.BUDGET_ITEMS)

        assert mapping == {
            "project_name": "Project",
            "area_name": "Area",
            "item_name": "Description",
            "budgeted_amount": "Budget",
            "actual_amount": "Actual",
        }

    def test_vendor_email_alias_with_hyphen(self):
        mapping = auto_detect_mapping(["Company", "E-mail"], ImportType.VENDORS)

        assert mapping["email"] == "E-mail"


class TestApplyMapping:
    def test_rekeys_and_drops_unmapped(self):
        rows = [{"Job": "Kitchen", "Customer": "Smith", "Extra": "x"}]

        mapped = apply_mapping(rows, {"name": "Job", "client_name": "Customer"})

        assert mapped == [{"name": "Kitchen", "client_name": "Smith"}]

    def test_missing_column_is_skipped(self):
        mapped = apply_mapping([{"Job": "Kitchen"}], {"name": "Job", "client_name": "Customer"})

        assert mapped == [{"name": "Kitchen"}]

    def test_reverse_mapping_restores_mapped_columns(self):
        rows = [{"Job": "Kitchen", "Customer": "Smith"}]
        mapping = {"name": "Job", "client_name": "Customer"}

        assert reverse_mapping(apply_mapping(rows, mapping), mapping) == rows


class TestValidateMapping:
    def test_reports_missing_required(self):
        assert validate_mapping({"name": "Job"}, ImportType.PROJECTS) == ["client_name"]

    def test_empty_header_counts_as_missing(self):
        missing = validate_mapping({"name": "Job", "client_name": ""}, "projects")

        assert missing == ["client_name"]

    def test_complete_mapping(self):
        assert validate_mapping({"company_name": "Vendor"}, ImportType.VENDORS) == []
