import discord
from discord import app_commands
from discord.ext import commands
import logging
import os
from typing import Optional
from pathlib import Path
from datetime import datetime

from .data_manager import DataManager
from .config_manager import ConfigManager
from .models import SelectionMode
from .quiz_controller import QuizController
from .quiz_views import (
    AttachmentPicker,
    ResultsView,
    COLOR_ERROR,
    COLOR_INFO,
    COLOR_WARNING,
    build_attachment_list_embed,
    build_message_embed,
    build_results_embed,
    join_labels,
    render_session,
    skipped_labels,
)

logger = logging.getLogger(__name__)

# Message content is capped at 2000 characters
MAX_SKIPPED_CONTENT = 1900


class QuizBot(commands.Bot):
    """Discord bot running multiple-choice quiz sessions over a question bank"""

    def __init__(self, config=None):
        # Slash commands only need the guilds intent
        intents = discord.Intents.none()
        intents.guilds = True

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}

        self.data_manager: Optional[DataManager] = None
        self.config_manager: Optional[ConfigManager] = None
        self.quiz_controller: Optional[QuizController] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")
            self.setup_components()
            self.setup_commands()
            logger.info("Bot setup completed successfully")
        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def setup_components(self):
        """Create the managers, apply config.json and load the question bank."""
        self.config_manager = ConfigManager()
        rejected = self.config_manager.apply_config(self.app_config)
        for message in rejected:
            logger.warning(f"Configuration value ignored: {message}")

        validation = self.config_manager.validate_settings()
        for issue in validation["issues"]:
            logger.warning(f"Configuration issue: {issue}")

        settings = self.config_manager.get_quiz_settings()
        self.data_manager = DataManager(settings.question_file, settings.attachment_file)
        self.data_manager.load_bank()

        self.quiz_controller = QuizController(self.data_manager, self.config_manager)

    @property
    def view_timeout(self) -> float:
        return float(self.config_manager.get_view_timeout())

    def setup_commands(self):
        """Register all slash commands"""

        @self.tree.command(name="help", description="Display available commands and their descriptions")
        async def help_command(interaction: discord.Interaction):
            await self.handle_help(interaction)

        @self.tree.command(name="quiz_all", description="Start a quiz with every question in bank order")
        async def quiz_all_command(interaction: discord.Interaction):
            await self.handle_start(interaction, SelectionMode.ALL)

        @self.tree.command(name="quiz_random", description="Start a quiz with a random sample of questions")
        @app_commands.describe(count="Number of questions (defaults to the configured size)")
        async def quiz_random_command(interaction: discord.Interaction, count: Optional[int] = None):
            await self.handle_start(interaction, SelectionMode.RANDOM, count=count)

        @self.tree.command(name="quiz_search", description="Start a quiz with questions matching a search term")
        @app_commands.describe(term="Text to look for in questions and options")
        async def quiz_search_command(interaction: discord.Interaction, term: str):
            await self.handle_start(interaction, SelectionMode.SEARCH, term=term)

        @self.tree.command(name="jump", description="Jump to a question by its number")
        @app_commands.describe(number="Question number, starting at 1")
        async def jump_command(interaction: discord.Interaction, number: str):
            await self.handle_jump(interaction, number)

        @self.tree.command(name="status", description="Show current quiz progress and score")
        async def status_command(interaction: discord.Interaction):
            await self.handle_status(interaction)

        @self.tree.command(name="skipped", description="Show the current question with the skipped list")
        async def skipped_command(interaction: discord.Interaction):
            await self.handle_skipped(interaction)

        @self.tree.command(name="end", description="End the quiz and show the results")
        async def end_command(interaction: discord.Interaction):
            await self.handle_end(interaction)

        @self.tree.command(name="attachments", description="Browse question attachments")
        @app_commands.describe(search="Part of a question index to filter by")
        async def attachments_command(interaction: discord.Interaction, search: Optional[str] = None):
            await self.handle_attachments(interaction, search or "")

        logger.info("Slash commands registered successfully")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")
        print(f"🤖 {self.user} is Ready and Online!")

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
            print(f"⚡ Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")
            print(f"❌ Failed to sync slash commands: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def handle_help(self, interaction: discord.Interaction):
        """Handle /help command"""
        try:
            help_embed = discord.Embed(
                title="🎯 Quiz Bot Commands",
                description="Answer multiple-choice questions with the buttons under each question",
                color=0x00ff00
            )
            help_embed.add_field(
                name="🎮 Start a Quiz",
                value=(
                    "`/quiz_all` - Every question in order\n"
                    "`/quiz_random [count]` - A random sample\n"
                    "`/quiz_search <term>` - Questions containing a word or phrase"
                ),
                inline=False
            )
            help_embed.add_field(
                name="🧭 During a Quiz",
                value=(
                    "`/jump <number>` - Go to a question by number\n"
                    "`/skipped` - Revisit skipped questions\n"
                    "`/status` - Show progress and score\n"
                    "`/end` - End the quiz and show results\n"
                    "`/attachments [search]` - Browse question images"
                ),
                inline=False
            )

            summary = self.data_manager.get_loading_summary()
            bank_text = (
                f"{summary['total_questions']} questions, "
                f"{summary['total_attachments']} attachments"
            )
            if summary['sample_active']:
                bank_text += "\n⚠️ Using the built-in sample bank"
            help_embed.add_field(name="📚 Question Bank", value=bank_text, inline=False)
            help_embed.add_field(
                name="⚙️ Current Settings",
                value=f"```\n{self.config_manager.get_settings_summary()}\n```",
                inline=False
            )
            help_embed.set_footer(text="Use slash commands to interact with the bot")

            await interaction.response.send_message(embed=help_embed)

        except discord.HTTPException as e:
            logger.error(f"Error in help command: {e}")
            await self.send_error_response(interaction, "Failed to display help", "❌ Help Error")

    async def handle_start(
        self,
        interaction: discord.Interaction,
        mode: SelectionMode,
        count: Optional[int] = None,
        term: Optional[str] = None,
    ):
        """Handle /quiz_all, /quiz_random and /quiz_search"""
        channel_id = interaction.channel_id
        result = self.quiz_controller.start_quiz(channel_id, mode, count=count, term=term)

        if not result['success']:
            await self.send_error_response(interaction, result['user_message'], "❌ Cannot Start Quiz")
            return

        payload = render_session(self.quiz_controller, channel_id, timeout=self.view_timeout)
        await interaction.response.send_message(content=f"🎯 {result['message']}", **payload)

    async def handle_jump(self, interaction: discord.Interaction, number: str):
        """Handle /jump command"""
        channel_id = interaction.channel_id
        result = self.quiz_controller.jump_to_question(channel_id, number)

        if not result['success']:
            await self.send_error_response(interaction, result['user_message'], "❌ Cannot Jump")
            return

        payload = render_session(self.quiz_controller, channel_id, timeout=self.view_timeout)
        await interaction.response.send_message(**payload)

    async def handle_skipped(self, interaction: discord.Interaction):
        """Handle /skipped command"""
        channel_id = interaction.channel_id
        if not self.quiz_controller.has_active_session(channel_id):
            await self.send_info_response(interaction, "No quiz is running here.", "ℹ️ No Active Quiz")
            return

        skipped = skipped_labels(self.quiz_controller, channel_id)
        if not skipped:
            await self.send_info_response(interaction, "You have no skipped questions.", "⏭️ Skipped Questions")
            return

        payload = render_session(self.quiz_controller, channel_id, timeout=self.view_timeout)
        await interaction.response.send_message(
            content=f"⏭️ {len(skipped)} skipped: " + join_labels([label for _, label in skipped], MAX_SKIPPED_CONTENT),
            **payload
        )

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /status command"""
        progress = self.quiz_controller.get_session_progress(interaction.channel_id)
        if progress is None:
            await self.send_info_response(
                interaction,
                "No quiz is running here. Start one with /quiz_all, /quiz_random or /quiz_search.",
                "ℹ️ No Active Quiz"
            )
            return

        completed = progress['state'] == 'completed'
        embed = discord.Embed(
            title=f"{'✅' if completed else '▶️'} Quiz Status - {progress['mode'].title()}",
            color=0x6699ff if completed else 0x00ff00
        )
        embed.add_field(
            name="📊 Progress",
            value=(
                f"Question: {progress['current_question']}/{progress['total_questions']}\n"
                f"Answered: {progress['answered']} · Skipped: {progress['skipped']}"
            ),
            inline=True
        )
        embed.add_field(
            name="🏆 Score",
            value=(
                f"✅ {progress['correct']} · ❌ {progress['wrong']}\n"
                f"{progress['percentage']}% of {progress['total_questions']}"
            ),
            inline=True
        )

        duration = datetime.now() - progress['start_time']
        minutes = int(duration.total_seconds() // 60)
        seconds = int(duration.total_seconds() % 60)
        embed.add_field(name="⏱️ Duration", value=f"{minutes}m {seconds}s", inline=True)
        embed.set_footer(text="Use /help to see all available commands")

        await interaction.response.send_message(embed=embed)

    async def handle_end(self, interaction: discord.Interaction):
        """Handle /end command"""
        result = self.quiz_controller.end_quiz(interaction.channel_id)
        if not result['success']:
            await self.send_error_response(interaction, result['user_message'], "❌ Cannot End Quiz")
            return

        await interaction.response.send_message(
            embed=build_results_embed(result['report']),
            view=ResultsView(self.quiz_controller, interaction.channel_id, timeout=self.view_timeout)
        )

    async def handle_attachments(self, interaction: discord.Interaction, term: str):
        """Handle /attachments command"""
        bank = self.quiz_controller.bank
        if not bank.attachments:
            await self.send_warning_response(
                interaction,
                "No attachments available. Please make sure the attachment file exists.",
                "📎 No Attachments"
            )
            return

        matches = bank.search_attachments(term)
        embed = build_attachment_list_embed(matches, term)
        if not matches:
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        picker = AttachmentPicker(matches, Path(self.data_manager.attachment_file).parent, timeout=self.view_timeout)
        await interaction.response.send_message(embed=embed, view=picker, ephemeral=True)

    async def _send_embed(self, interaction: discord.Interaction, embed: discord.Embed):
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send response to user: {e}")

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        embed = build_message_embed(message, title, COLOR_ERROR)
        embed.set_footer(text="If this error persists, try using /help for available commands")
        await self._send_embed(interaction, embed)

    async def send_info_response(self, interaction: discord.Interaction, message: str, title: str = "ℹ️ Information"):
        """Send formatted info response to user"""
        await self._send_embed(interaction, build_message_embed(message, title, COLOR_INFO))

    async def send_warning_response(self, interaction: discord.Interaction, message: str, title: str = "⚠️ Warning"):
        """Send formatted warning response to user"""
        await self._send_embed(interaction, build_message_embed(message, title, COLOR_WARNING))


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(config)

    try:
        logger.info("Starting Discord Quiz Bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
