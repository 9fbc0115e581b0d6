"""
Unit tests for DataManager loading and validation.
"""
import unittest

from quizdeck.data_manager import DataManager
from tests.test_fixtures import TempDataFiles, TestFixtures


class TestDataManagerLoading(unittest.TestCase):
    """Test cases for loading the question bank and attachments."""

    def test_load_valid_files(self):
        with TempDataFiles(TestFixtures.create_question_json(3), TestFixtures.create_attachment_json()) as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            bank = dm.load_bank()

        self.assertEqual(len(bank), 3)
        self.assertEqual([q.index for q in bank.questions], ["Q1", "Q2", "Q3"])
        self.assertEqual(bank.questions[1].correct, "B")
        self.assertEqual(bank.questions[0].option("C"), "gamma")
        self.assertTrue(bank.has_attachment("Q1"))
        self.assertFalse(bank.has_attachment("Q2"))
        self.assertFalse(dm.has_load_errors())
        self.assertFalse(dm.is_sample_bank_active())

    def test_missing_attachment_file_is_not_an_error(self):
        with TempDataFiles(TestFixtures.create_question_json(2)) as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            bank = dm.load_bank()

        self.assertEqual(len(bank), 2)
        self.assertEqual(bank.attachments, ())
        self.assertFalse(dm.has_load_errors())

    def test_missing_question_file_uses_sample_bank(self):
        with TempDataFiles() as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            bank = dm.load_bank()

        self.assertEqual(len(bank), 3)
        self.assertTrue(dm.is_sample_bank_active())
        self.assertTrue(dm.has_load_errors())
        self.assertIn("File not found", dm.get_load_errors()[0])

    def test_invalid_json(self):
        with TempDataFiles(raw_questions="{ invalid json }") as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            dm.load_bank()

        self.assertTrue(dm.is_sample_bank_active())
        self.assertIn("Invalid JSON", dm.get_load_errors()[0])

    def test_non_utf8_question_file(self):
        with TempDataFiles(raw_questions=b'[{"quesIndex": "\xff"}]') as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            bank = dm.load_bank()

        self.assertTrue(dm.is_sample_bank_active())
        self.assertEqual(len(bank), 3)
        self.assertIn("not valid UTF-8", dm.get_load_errors()[0])

    def test_non_utf8_attachment_file(self):
        with TempDataFiles(TestFixtures.create_question_json(2)) as files:
            files.attachment_file.write_bytes(b"\xff\xfe")
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            bank = dm.load_bank()

        self.assertEqual(len(bank), 2)
        self.assertEqual(bank.attachments, ())
        self.assertEqual(len(dm.get_load_errors()), 1)

    def test_not_an_array(self):
        with TempDataFiles(raw_questions='{"quiz": []}') as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            dm.load_bank()

        self.assertTrue(dm.is_sample_bank_active())
        self.assertIn("Expected a JSON array", dm.get_load_errors()[0])

    def test_invalid_attachment_structure(self):
        with TempDataFiles(TestFixtures.create_question_json(2), [{"quesIndex": "Q1"}]) as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            bank = dm.load_bank()

        self.assertEqual(len(bank), 2)
        self.assertEqual(bank.attachments, ())
        self.assertEqual(len(dm.get_load_errors()), 1)

    def test_reload_clears_previous_errors(self):
        with TempDataFiles(TestFixtures.create_question_json(2)) as files:
            dm = DataManager(str(files.question_file) + ".missing", str(files.attachment_file))
            dm.load_bank()
            self.assertTrue(dm.has_load_errors())

            dm.question_file = files.question_file
            dm.load_bank()

        self.assertFalse(dm.has_load_errors())
        self.assertFalse(dm.is_sample_bank_active())

    def test_loading_summary(self):
        with TempDataFiles(TestFixtures.create_question_json(4), TestFixtures.create_attachment_json()) as files:
            dm = DataManager(str(files.question_file), str(files.attachment_file))
            dm.load_bank()
            summary = dm.get_loading_summary()

        self.assertEqual(summary['total_questions'], 4)
        self.assertEqual(summary['total_attachments'], 1)
        self.assertFalse(summary['has_errors'])
        self.assertEqual(summary['error_count'], 0)
        self.assertFalse(summary['sample_active'])


class TestDataManagerValidation(unittest.TestCase):
    """Test cases for question structure validation."""

    def setUp(self):
        self.dm = DataManager()

    def test_valid_structure(self):
        self.assertTrue(self.dm.validate_question_structure(TestFixtures.create_question_json(2)))

    def test_empty_array(self):
        self.assertFalse(self.dm.validate_question_structure([]))

    def test_item_not_object(self):
        self.assertFalse(self.dm.validate_question_structure(["question"]))

    def test_missing_fields(self):
        for key in DataManager.QUESTION_FIELDS:
            data = TestFixtures.create_question_json(1)
            del data[0][key]
            self.assertFalse(self.dm.validate_question_structure(data), key)

    def test_non_string_option(self):
        data = TestFixtures.create_question_json(1)
        data[0]["b"] = 42
        self.assertFalse(self.dm.validate_question_structure(data))

    def test_bad_correct_label(self):
        data = TestFixtures.create_question_json(1)
        data[0]["trueAns"] = "Z"
        self.assertFalse(self.dm.validate_question_structure(data))

    def test_lowercase_correct_label_accepted(self):
        data = TestFixtures.create_question_json(1)
        data[0]["trueAns"] = "c"
        self.assertTrue(self.dm.validate_question_structure(data))

    def test_numeric_question_index_accepted(self):
        data = TestFixtures.create_question_json(1)
        data[0]["quesIndex"] = 17
        self.assertTrue(self.dm.validate_question_structure(data))


if __name__ == '__main__':
    unittest.main()
