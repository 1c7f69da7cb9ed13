import pytest

from rpg_mechanics.engine.template_validator import (
    extract_identifiers,
    find_undefined_identifiers,
    validate_template_config,
)


def _errors_with(result, code):
    return [e for e in result.errors if e.code == code]


def test_valid_template(template_data):
    result = validate_template_config(template_data)

    assert result.valid is True
    assert result.errors == []
    assert result.warnings == []


def test_accepts_rule_template_model(template):
    assert validate_template_config(template).valid is True


@pytest.mark.parametrize("version", ["invalid", "1.0", "1.0.0-beta", "v1.0.0", "1.0.0\n", None, 100])
def test_rejects_invalid_version(template_data, version):
    template_data["version"] = version

    result = validate_template_config(template_data)

    assert result.valid is False
    assert any(e.field == "version" and e.code == "INVALID_VERSION" for e in result.errors)


def test_missing_sections_are_reported(template_data):
    result = validate_template_config({"version": "1.0.0"})

    assert result.valid is False
    assert set(result.codes()) == {"INVALID_STATS", "INVALID_CHECKS", "INVALID_FORMULAS"}


def test_non_mapping_config_does_not_raise():
    result = validate_template_config(["not", "a", "template"])

    assert result.valid is False
    assert "INVALID_VERSION" in result.codes()
    assert "INVALID_STATS" in result.codes()


def test_stat_level_errors_are_field_qualified(template_data):
    template_data["stats"].append({"id": "", "name": "", "type": "color"})

    result = validate_template_config(template_data)

    fields = {(e.field, e.code) for e in result.errors}
    assert ("stats[2].id", "INVALID_STAT_ID") in fields
    assert ("stats[2].name", "INVALID_STAT_NAME") in fields
    assert ("stats[2].type", "INVALID_STAT_TYPE") in fields


def test_non_dict_stat_entry(template_data):
    template_data["stats"].append("strength")

    result = validate_template_config(template_data)

    assert {"INVALID_STAT_ID", "INVALID_STAT_NAME", "INVALID_STAT_TYPE"} <= set(result.codes())


def test_number_stat_requires_numeric_default(template_data):
    template_data["stats"][0]["defaultValue"] = "10"

    result = validate_template_config(template_data)

    errors = _errors_with(result, "INVALID_DEFAULT_VALUE")
    assert len(errors) == 1
    assert errors[0].field == "stats[0].defaultValue"


def test_boolean_is_not_a_numeric_default(template_data):
    template_data["stats"][0]["defaultValue"] = True

    assert "INVALID_DEFAULT_VALUE" in validate_template_config(template_data).codes()


def test_non_number_stats_skip_default_check(template_data):
    template_data["stats"].append(
        {"id": "title", "name": "Title", "type": "string", "defaultValue": "Squire"}
    )

    assert validate_template_config(template_data).valid is True


def test_min_greater_than_max(template_data):
    template_data["stats"][1]["minValue"] = 30

    result = validate_template_config(template_data)

    errors = _errors_with(result, "INVALID_MIN_MAX")
    assert len(errors) == 1
    assert errors[0].field == "stats[1].minValue"


def test_equal_min_and_max_are_allowed(template_data):
    template_data["stats"][1]["minValue"] = 20

    assert validate_template_config(template_data).valid is True


def test_duplicate_stat_ids(template_data):
    template_data["stats"].append(
        {"id": "strength", "name": "Strength Again", "type": "number", "defaultValue": 5}
    )
    template_data["stats"].append(
        {"id": "strength", "name": "Strength Thrice", "type": "number", "defaultValue": 5}
    )

    result = validate_template_config(template_data)

    assert result.valid is False
    errors = _errors_with(result, "DUPLICATE_STAT_IDS")
    assert len(errors) == 1
    assert errors[0].field == "stats"
    assert "strength" in errors[0].message


def test_duplicates_reported_alongside_stat_errors(template_data):
    template_data["stats"] = [
        {"id": "strength", "name": "", "type": "number", "defaultValue": 1},
        {"id": "strength", "name": "Strength", "type": "number", "defaultValue": "x"},
    ]

    codes = validate_template_config(template_data).codes()

    assert "INVALID_STAT_NAME" in codes
    assert "INVALID_DEFAULT_VALUE" in codes
    assert "DUPLICATE_STAT_IDS" in codes


def test_undefined_variable_in_check_formula():
    config = {
        "version": "1.0.0",
        "stats": [{"id": "strength", "name": "Strength", "type": "number", "defaultValue": 10}],
        "checks": [{"id": "dodge", "name": "Dodge", "formula": "agility + 3", "successThreshold": 10}],
        "formulas": [],
    }

    result = validate_template_config(config)

    assert result.valid is False
    errors = _errors_with(result, "UNDEFINED_VARIABLES")
    assert len(errors) == 1
    assert errors[0].field == "checks[0].formula"
    assert "agility" in errors[0].message


def test_undefined_variables_in_formula_expression_are_joined(template_data):
    template_data["formulas"][0]["expression"] = "luck * 2 + charm + luck"

    errors = _errors_with(validate_template_config(template_data), "UNDEFINED_VARIABLES")

    assert len(errors) == 1
    assert errors[0].field == "formulas[0].expression"
    assert errors[0].message == "Undefined variables in expression: luck, charm"


def test_math_names_literals_and_numbers_are_allowed(template_data):
    template_data["checks"][0]["formula"] = (
        "Math.floor(strength / 3) + max(agility, 2) + sqrt(16) >= 10 && true != null"
    )

    assert validate_template_config(template_data).valid is True


def test_decimal_literals_are_allowed(template_data):
    template_data["formulas"][0]["expression"] = "strength * 1.5"

    assert validate_template_config(template_data).valid is True


def test_reference_check_is_lexical_only(template_data):
    # Unbalanced parentheses are not detected
    template_data["checks"][0]["formula"] = "((strength"

    assert validate_template_config(template_data).valid is True


def test_math_constants_are_reported_by_their_own_word(template_data):
    template_data["formulas"][0]["expression"] = "strength * Math.PI"

    result = validate_template_config(template_data)

    errors = _errors_with(result, "UNDEFINED_VARIABLES")
    assert len(errors) == 1
    assert "PI" in errors[0].message


def test_keyword_stat_ids_are_accepted(template_data):
    template_data["stats"].append({"id": "def", "name": "Defense", "type": "number", "defaultValue": 3})
    template_data["checks"][0]["formula"] = "def + strength"

    assert validate_template_config(template_data).valid is True


def test_check_field_errors(template_data):
    template_data["checks"].append({"id": "", "formula": "", "successThreshold": "high"})

    fields = {(e.field, e.code) for e in validate_template_config(template_data).errors}

    assert ("checks[1].id", "INVALID_CHECK_ID") in fields
    assert ("checks[1].formula", "INVALID_CHECK_FORMULA") in fields
    assert ("checks[1].successThreshold", "INVALID_SUCCESS_THRESHOLD") in fields


def test_formula_field_errors(template_data):
    template_data["formulas"].append({"id": 3, "expression": None, "returnType": "array"})

    fields = {(e.field, e.code) for e in validate_template_config(template_data).errors}

    assert ("formulas[1].id", "INVALID_FORMULA_ID") in fields
    assert ("formulas[1].expression", "INVALID_FORMULA_EXPRESSION") in fields
    assert ("formulas[1].returnType", "INVALID_RETURN_TYPE") in fields


def test_checks_use_no_stats_when_stats_are_invalid(template_data):
    template_data["stats"] = "strength"

    result = validate_template_config(template_data)

    assert "INVALID_STATS" in result.codes()
    assert "UNDEFINED_VARIABLES" in result.codes()


def test_extract_identifiers():
    assert extract_identifiers("Math.floor(strength / 3)") == ["Math", "floor", "strength", "3"]


def test_find_undefined_identifiers():
    assert find_undefined_identifiers("strength and not luck", {"strength"}) == ["luck"]
