import unittest

import numpy as np
import pytest

from markovnet import (
    FileAccessError,
    MalformedInputError,
    read_evidence_file,
    read_model_file,
    read_model_from_string,
)
from markovnet.uai_parser import RawFactor, UAIModel


def model_text(*lines):
    return "\n".join(lines)


class TestUAIParser(unittest.TestCase):
    def test_read_model_from_string(self):
        content = model_text(
            "MARKOV",
            "2",
            "2 2",
            "2",
            "1 0",
            "2 0 1",
            "2",
            "0.6 0.4",
            "4",
            "0.9 0.1 0.2 0.8",
        )
        model = read_model_from_string(content)
        self.assertEqual(model.nvars, 2)
        self.assertEqual(model.cards, [2, 2])
        self.assertEqual(len(model.factors), 2)

        factor0, factor1 = model.factors
        self.assertEqual(factor0.vars, (0,))
        self.assertEqual(factor1.vars, (0, 1))
        np.testing.assert_allclose(factor0.values, [0.6, 0.4])
        np.testing.assert_allclose(factor1.values, [0.9, 0.1, 0.2, 0.8])

    def test_tables_may_wrap_lines(self):
        content = model_text(
            "MARKOV",
            "2",
            "2 3",
            "1",
            "2 0 1",
            "6 1 2",
            "3 4",
            "5 6",
        )
        model = read_model_from_string(content)
        np.testing.assert_allclose(model.factors[0].values, [1, 2, 3, 4, 5, 6])

    def test_truncated_cardinalities(self):
        content = model_text("MARKOV", "2", "2", "1", "1 0", "2", "0.5 0.5")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_invalid_network_type(self):
        with self.assertRaises(MalformedInputError):
            read_model_from_string(model_text("INVALID", "1", "2", "0"))

    def test_bayes_network_rejected(self):
        with self.assertRaises(MalformedInputError):
            read_model_from_string(model_text("BAYES", "1", "2", "1", "1 0", "2", "0.5 0.5"))

    def test_non_positive_cardinality(self):
        with self.assertRaises(MalformedInputError):
            read_model_from_string(model_text("MARKOV", "2", "2 0", "0"))

    def test_scope_size_mismatch(self):
        content = model_text("MARKOV", "2", "2 2", "1", "2 0", "2", "0.5 0.5")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_unknown_variable_in_scope(self):
        content = model_text("MARKOV", "2", "2 2", "1", "1 5", "2", "0.5 0.5")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_repeated_variable_in_scope(self):
        content = model_text("MARKOV", "2", "2 2", "1", "2 1 1", "4", "1 1 1 1")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_missing_table_entries(self):
        with self.assertRaises(MalformedInputError):
            read_model_from_string(model_text("MARKOV", "1", "2", "1", "1 0"))

    def test_table_size_mismatch(self):
        content = model_text("MARKOV", "1", "2", "1", "1 0", "3", "0.1 0.2 0.7")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_short_table(self):
        content = model_text("MARKOV", "1", "3", "1", "1 0", "3", "0.1 0.2")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_non_numeric_value(self):
        content = model_text("MARKOV", "1", "2", "1", "1 0", "2", "0.1 abc")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_non_integer_header(self):
        with self.assertRaises(MalformedInputError):
            read_model_from_string(model_text("MARKOV", "two", "2 2", "0"))

    def test_trailing_tokens(self):
        content = model_text("MARKOV", "1", "2", "1", "1 0", "2", "0.5 0.5 0.5")
        with self.assertRaises(MalformedInputError):
            read_model_from_string(content)

    def test_malformed_input_is_value_error(self):
        with self.assertRaises(ValueError):
            read_model_from_string("MARKOV\n")

    def test_raw_factor_repr(self):
        factor = RawFactor(vars=(0,), values=np.array([0.5, 0.5]))
        self.assertIn("vars=(0,)", repr(factor))
        self.assertIn("size=2", repr(factor))

    def test_uai_model_repr(self):
        factor = RawFactor(vars=(0,), values=np.array([0.5, 0.5]))
        model = UAIModel(nvars=1, cards=[2], factors=[factor])
        self.assertIn("nvars=1", repr(model))
        self.assertIn("nfactors=1", repr(model))


def test_read_model_file(tmp_path):
    path = tmp_path / "pair.uai"
    path.write_text("MARKOV\n2\n2 2\n1\n2 0 1\n4\n1 2 3 4\n", encoding="utf-8")
    model = read_model_file(str(path))
    assert model.cards == [2, 2]
    assert model.factors[0].vars == (0, 1)


def test_read_model_file_missing(tmp_path):
    with pytest.raises(FileAccessError):
        read_model_file(str(tmp_path / "missing.uai"))


def test_read_evidence_file(tmp_path):
    filepath = tmp_path / "example.evid"
    filepath.write_text("2 0 1 3 0\n", encoding="utf-8")
    assert read_evidence_file(str(filepath)) == {0: 1, 3: 0}


def test_read_evidence_file_empty_path():
    assert read_evidence_file("") == {}
    assert read_evidence_file(None) == {}


def test_read_evidence_file_empty_content(tmp_path):
    filepath = tmp_path / "empty.evid"
    filepath.write_text("", encoding="utf-8")
    assert read_evidence_file(str(filepath)) == {}


def test_read_evidence_file_malformed(tmp_path):
    filepath = tmp_path / "bad.evid"
    filepath.write_text("2 0 1\n", encoding="utf-8")
    with pytest.raises(MalformedInputError, match="Malformed evidence line"):
        read_evidence_file(str(filepath))


if __name__ == "__main__":
    unittest.main()
