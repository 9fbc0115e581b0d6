"""
Unit tests for Discord bot command handlers with mocked interactions.
"""
import unittest
from unittest.mock import AsyncMock, Mock

import discord

from quizdeck.bot import QuizBot
from quizdeck.config_manager import ConfigManager
from quizdeck.models import SelectionMode
from quizdeck.question_bank import QuestionBank
from quizdeck.quiz_views import AttachmentPicker, QuestionView, ResultsView
from tests.test_fixtures import MockDiscordObjects, TempDataFiles, TestFixtures


class BotTestCase(unittest.IsolatedAsyncioTestCase):
    """Bot with in-memory components; no connection to Discord is made."""

    async def asyncSetUp(self):
        self.bot = QuizBot()
        self.bot.quiz_controller = TestFixtures.create_controller(5)
        self.bot.data_manager = self.bot.quiz_controller.data_manager
        self.bot.config_manager = self.bot.quiz_controller.config_manager
        self.channel_id = 12345
        self.interaction = MockDiscordObjects.create_mock_interaction(self.channel_id)

    def sent_kwargs(self):
        self.interaction.response.send_message.assert_called_once()
        return self.interaction.response.send_message.call_args.kwargs


class TestBotSetup(unittest.IsolatedAsyncioTestCase):

    async def test_setup_components_from_config(self):
        with TempDataFiles(TestFixtures.create_question_json(4), TestFixtures.create_attachment_json()) as files:
            bot = QuizBot({
                'bot': {'command_prefix': '?'},
                'quiz': {
                    'question_file': str(files.question_file),
                    'attachment_file': str(files.attachment_file),
                    'view_timeout': 300,
                }
            })
            bot.setup_components()

        self.assertEqual(bot.command_prefix, '?')
        self.assertEqual(len(bot.quiz_controller.bank), 4)
        self.assertEqual(len(bot.quiz_controller.bank.attachments), 1)
        self.assertEqual(bot.view_timeout, 300.0)

    async def test_setup_components_ignores_invalid_config(self):
        with TempDataFiles(TestFixtures.create_question_json(2)) as files:
            bot = QuizBot({'quiz': {'question_file': str(files.question_file), 'view_timeout': 1}})
            bot.setup_components()

        self.assertEqual(bot.view_timeout, float(ConfigManager.DEFAULT_VIEW_TIMEOUT))

    async def test_setup_components_logs_configuration_issues(self):
        with TempDataFiles() as files:
            bot = QuizBot({'quiz': {'question_file': str(files.question_file.with_suffix('.txt'))}})
            with self.assertLogs('quizdeck.bot', level='WARNING') as logs:
                bot.setup_components()

        self.assertTrue(any("Configuration issue" in line for line in logs.output))
        self.assertTrue(bot.data_manager.is_sample_bank_active())

    async def test_setup_commands(self):
        bot = QuizBot()
        bot.setup_commands()

        names = {command.name for command in bot.tree.get_commands()}
        self.assertEqual(names, {
            "help", "quiz_all", "quiz_random", "quiz_search", "jump",
            "status", "skipped", "end", "attachments",
        })


class TestHelpAndStart(BotTestCase):

    async def test_help(self):
        await self.bot.handle_help(self.interaction)

        embed = self.sent_kwargs()['embed']
        fields = {field.name: field.value for field in embed.fields}
        self.assertIn("/quiz_random", fields["🎮 Start a Quiz"])
        self.assertIn("5 questions", fields["📚 Question Bank"])

    async def test_help_with_discord_error(self):
        self.interaction.response.send_message = AsyncMock(
            side_effect=[discord.HTTPException(Mock(status=500, reason="Server Error"), "boom"), None]
        )

        await self.bot.handle_help(self.interaction)

        self.assertEqual(self.interaction.response.send_message.call_count, 2)
        last = self.interaction.response.send_message.call_args.kwargs
        self.assertIn("Help Error", last['embed'].title)

    async def test_start_all(self):
        await self.bot.handle_start(self.interaction, SelectionMode.ALL)

        kwargs = self.sent_kwargs()
        self.assertIn("5 questions", kwargs['content'])
        self.assertIsInstance(kwargs['view'], QuestionView)
        self.assertIn("Question 1/5", kwargs['embed'].title)

    async def test_start_random_with_count(self):
        await self.bot.handle_start(self.interaction, SelectionMode.RANDOM, count=2)

        self.assertEqual(self.bot.quiz_controller.get_session(self.channel_id).total, 2)

    async def test_start_search_without_matches(self):
        await self.bot.handle_start(self.interaction, SelectionMode.SEARCH, term="nothing-here")

        kwargs = self.sent_kwargs()
        self.assertTrue(kwargs['ephemeral'])
        self.assertIn("No questions found matching: nothing-here", kwargs['embed'].description)
        self.assertFalse(self.bot.quiz_controller.has_active_session(self.channel_id))


class TestSessionCommands(BotTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.bot.quiz_controller.start_quiz(self.channel_id, SelectionMode.ALL)

    async def test_jump(self):
        await self.bot.handle_jump(self.interaction, "4")

        self.assertEqual(self.bot.quiz_controller.get_session(self.channel_id).position, 3)
        self.assertIn("Question 4/5", self.sent_kwargs()['embed'].title)

    async def test_jump_invalid(self):
        await self.bot.handle_jump(self.interaction, "seven")

        kwargs = self.sent_kwargs()
        self.assertTrue(kwargs['ephemeral'])
        self.assertIn("valid question number", kwargs['embed'].description)

    async def test_skipped_when_none(self):
        await self.bot.handle_skipped(self.interaction)
        self.assertIn("no skipped questions", self.sent_kwargs()['embed'].description)

    async def test_skipped_lists_questions(self):
        self.bot.quiz_controller.skip_question(self.channel_id)
        self.bot.quiz_controller.skip_question(self.channel_id)

        await self.bot.handle_skipped(self.interaction)

        kwargs = self.sent_kwargs()
        self.assertIn("2 skipped: 1, 2", kwargs['content'])
        self.assertIsInstance(kwargs['view'], QuestionView)

    async def test_skipped_content_fits_in_a_message(self):
        self.bot.quiz_controller = TestFixtures.create_controller(bank=TestFixtures.create_sample_bank(500))
        self.bot.quiz_controller.start_quiz(self.channel_id, SelectionMode.ALL)
        for _ in range(450):
            self.bot.quiz_controller.skip_question(self.channel_id)

        await self.bot.handle_skipped(self.interaction)

        content = self.sent_kwargs()['content']
        self.assertTrue(content.startswith("⏭️ 450 skipped: 1, 2"))
        self.assertLessEqual(len(content), 2000)
        self.assertIn("more", content)

    async def test_status(self):
        self.bot.quiz_controller.answer(self.channel_id, "A")

        await self.bot.handle_status(self.interaction)

        embed = self.sent_kwargs()['embed']
        fields = {field.name: field.value for field in embed.fields}
        self.assertIn("All", embed.title)
        self.assertIn("Question: 1/5", fields["📊 Progress"])
        self.assertIn("20%", fields["🏆 Score"])

    async def test_end(self):
        await self.bot.handle_end(self.interaction)

        kwargs = self.sent_kwargs()
        self.assertIn("Quiz Results", kwargs['embed'].title)
        self.assertIsInstance(kwargs['view'], ResultsView)


class TestCommandsWithoutSession(BotTestCase):

    async def test_status(self):
        await self.bot.handle_status(self.interaction)
        self.assertIn("No Active Quiz", self.sent_kwargs()['embed'].title)

    async def test_skipped(self):
        await self.bot.handle_skipped(self.interaction)
        self.assertIn("No Active Quiz", self.sent_kwargs()['embed'].title)

    async def test_end(self):
        await self.bot.handle_end(self.interaction)
        self.assertIn("Cannot End Quiz", self.sent_kwargs()['embed'].title)

    async def test_jump(self):
        await self.bot.handle_jump(self.interaction, "1")
        self.assertIn("No quiz is running", self.sent_kwargs()['embed'].description)

    async def test_error_after_response_uses_followup(self):
        interaction = MockDiscordObjects.create_mock_interaction(self.channel_id, response_done=True)

        await self.bot.send_error_response(interaction, "Something failed")

        interaction.followup.send.assert_called_once()
        interaction.response.send_message.assert_not_called()


class TestAttachmentsCommand(BotTestCase):

    async def test_list_all(self):
        await self.bot.handle_attachments(self.interaction, "")

        kwargs = self.sent_kwargs()
        self.assertIsInstance(kwargs['view'], AttachmentPicker)
        self.assertEqual([o.value for o in kwargs['view'].select.options], ["2", "12"])

    async def test_filter(self):
        await self.bot.handle_attachments(self.interaction, "12")

        kwargs = self.sent_kwargs()
        self.assertEqual([o.value for o in kwargs['view'].select.options], ["12"])

    async def test_filter_without_matches(self):
        await self.bot.handle_attachments(self.interaction, "99")

        kwargs = self.sent_kwargs()
        self.assertNotIn('view', kwargs)
        self.assertEqual(kwargs['embed'].description, "No attachments found.")

    async def test_no_attachments_loaded(self):
        bank = TestFixtures.create_sample_bank(3)
        self.bot.quiz_controller.data_manager.bank = QuestionBank(bank.questions)

        await self.bot.handle_attachments(self.interaction, "")

        self.assertIn("No Attachments", self.sent_kwargs()['embed'].title)


if __name__ == '__main__':
    unittest.main()
