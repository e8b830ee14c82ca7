"""
Field formatter tests.
Covers: password masking, swatch option label decoding, full-state redaction.
"""
from __future__ import annotations

from urllib.parse import quote

from tracker.diff.formatter import MASK, display_changes, format_value, option_labels, redact_tree


def _serialized_option(option_id: str, admin_label: str, store_label: str = "") -> str:
    pairs = [
        (f"optionvisual[value][{option_id}][0]", admin_label),
        (f"optionvisual[value][{option_id}][1]", store_label),
        (f"option[order][{option_id}]", "1"),
    ]
    return "&".join(f"{quote(key)}={quote(value)}" for key, value in pairs)


class TestPasswordMask:
    def test_password_fields_are_masked(self):
        assert format_value("password", "s3cret!") == MASK
        assert format_value("new_Password_confirm", "s3cret!") == MASK
        assert format_value("password_hash", None) == MASK

    def test_other_fields_pass_through(self):
        assert format_value("sku", "SHIRT-01") == "SHIRT-01"
        assert format_value("price", 19.99) == 19.99


class TestSerializedOptions:
    def test_admin_labels_are_joined(self):
        value = [_serialized_option("option_0", "Red", "Rouge"), _serialized_option("option_1", "Blue")]
        assert format_value("serialized_options", value) == "Red, Blue"

    def test_blank_and_zero_labels_are_dropped(self):
        value = [_serialized_option("option_0", ""), _serialized_option("option_1", "0")]
        assert option_labels(value) == []

    def test_undecodable_list_is_kept(self):
        value = ["form_key=abc", 42]
        assert format_value("serialized_options", value) == value

    def test_non_list_value_is_kept(self):
        assert format_value("serialized_options", "raw") == "raw"


class TestRedaction:
    def test_redact_tree_masks_top_level_fields(self):
        data = {"username": "jdoe", "password": "hunter2", "extra": {"password": "nested"}}
        assert redact_tree(data) == {
            "username": "jdoe",
            "password": MASK,
            "extra": {"password": "nested"},
        }

    def test_attribute_changes_show_option_block_only(self):
        changes = {"optionvisual": {"value": {"option_0": ["Red"]}}, "frontend_label": "Colour"}
        entity_type = "Magento\\Catalog\\Model\\ResourceModel\\Eav\\Attribute"
        assert display_changes(entity_type, changes) == {"optionvisual": changes["optionvisual"]}

    def test_other_changes_are_shown_unchanged(self):
        changes = {"frontend_label": "Colour"}
        entity_type = "Magento\\Catalog\\Model\\ResourceModel\\Eav\\Attribute"
        assert display_changes(entity_type, changes) == changes
        assert display_changes("Magento\\Cms\\Model\\Page", {"optionvisual": 1}) == {"optionvisual": 1}
