"""
Discord embeds and button views that render a quiz session.
"""
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import discord

from .models import ANSWER_OPTIONS, AttachmentRecord, ScoreReport, SessionSnapshot
from .quiz_controller import QuizController


logger = logging.getLogger(__name__)

COLOR_INFO = 0x6699ff
COLOR_SUCCESS = 0x00ff00
COLOR_ERROR = 0xff0000
COLOR_WARNING = 0xffaa00

MAX_SELECT_OPTIONS = 25  # Discord limit per select menu
MAX_FIELD_VALUE = 1024  # Discord limit per embed field value
MAX_TITLE = 256
# Discord allows 4096, kept lower so the whole embed stays under 6000
MAX_DESCRIPTION = 2048
# Four option lines must fit in one field value
MAX_OPTION_TEXT = 240


def shorten(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 1] + "…"


def join_labels(labels: List[str], limit: int, separator: str = ", ") -> str:
    """
    Join labels into at most limit characters.

    Labels that do not fit are summarised as "… and K more".
    """
    joined = separator.join(labels)
    if len(joined) <= limit:
        return joined

    shown: List[str] = []
    used = 0
    for label in labels:
        extra = len(label) + (len(separator) if shown else 0)
        rest = len(labels) - len(shown) - 1
        suffix = f" … and {rest} more" if rest else ""
        if used + extra + len(suffix) > limit:
            break
        shown.append(label)
        used += extra

    hidden = len(labels) - len(shown)
    if not shown:
        return f"… and {hidden} more"
    return f"{separator.join(shown)} … and {hidden} more"


def progress_bar(percent: float, width: int = 20) -> str:
    filled = int(round(width * max(0.0, min(percent, 100.0)) / 100))
    return "█" * filled + "░" * (width - filled)


def build_question_embed(
    snapshot: SessionSnapshot,
    skipped_labels: List[str],
    has_attachment: bool = False,
) -> discord.Embed:
    """
    Render the current question, the options and the running score.

    Once the question is answered the chosen option and the correct one are
    marked, so revisiting an answered question shows its feedback again.
    """
    question = snapshot.question
    embed = discord.Embed(
        title=shorten(f"Question {snapshot.question_number}/{snapshot.total} · #{question.index}", MAX_TITLE),
        description=shorten(question.text, MAX_DESCRIPTION),
        color=COLOR_INFO
    )

    lines = []
    for label in ANSWER_OPTIONS:
        marker = "▫️"
        if snapshot.answered:
            if label == question.correct:
                marker = "✅"
            elif label == snapshot.chosen:
                marker = "❌"
        lines.append(f"{marker} **{label}.** {shorten(question.option(label), MAX_OPTION_TEXT)}")
    embed.add_field(name="Options", value="\n".join(lines), inline=False)

    if snapshot.answered:
        if snapshot.chosen == question.correct:
            embed.color = COLOR_SUCCESS
            feedback = "✅ Correct! Well done."
        else:
            embed.color = COLOR_ERROR
            feedback = f"❌ Incorrect. The correct answer is **{question.correct}**."
        embed.add_field(name="Feedback", value=feedback, inline=False)

    embed.add_field(
        name="📊 Score",
        value=f"✅ {snapshot.correct_count} · ❌ {snapshot.wrong_count}",
        inline=True
    )
    embed.add_field(
        name="Progress",
        value=f"`{progress_bar(snapshot.progress)}` {int(snapshot.progress)}%",
        inline=True
    )

    if skipped_labels:
        note = ""
        if len(skipped_labels) > MAX_SELECT_OPTIONS:
            note = f"\nThe menu lists the first {MAX_SELECT_OPTIONS}; use /jump <number> for the rest."
        embed.add_field(
            name=f"⏭️ Skipped ({len(skipped_labels)})",
            value=join_labels(skipped_labels, MAX_FIELD_VALUE - len(note)) + note,
            inline=False
        )

    if has_attachment:
        embed.set_footer(text="📎 This question has an attachment")
    return embed


def build_results_embed(report: ScoreReport) -> discord.Embed:
    embed = discord.Embed(
        title="🏁 Quiz Results",
        description=f"You scored **{report.percentage}%**",
        color=COLOR_SUCCESS if report.percentage >= 50 else COLOR_WARNING
    )
    embed.add_field(name="✅ Correct", value=str(report.correct), inline=True)
    embed.add_field(name="❌ Wrong", value=str(report.wrong), inline=True)
    embed.add_field(name="📝 Total", value=str(report.total), inline=True)
    if report.unanswered:
        embed.add_field(name="⏭️ Unanswered", value=str(report.unanswered), inline=True)
    embed.set_footer(text="Use Review to go back, or New quiz to choose another mode")
    return embed


def build_message_embed(message: str, title: str, color: int = COLOR_ERROR) -> discord.Embed:
    return discord.Embed(title=title, description=message, color=color)


def build_attachment_payload(
    attachment: AttachmentRecord,
    base_dir: Path,
) -> Tuple[discord.Embed, Optional[discord.File]]:
    """
    Build the embed (and local file, if any) showing an attachment image.

    Image references starting with http(s) are linked directly; anything else
    is read relative to the directory of the attachment list.
    """
    embed = discord.Embed(title=f"📎 Attachment for #{attachment.index}", color=COLOR_INFO)
    ref = attachment.image_ref
    if ref.startswith(("http://", "https://")):
        embed.set_image(url=ref)
        return embed, None

    path = Path(ref)
    if not path.is_absolute():
        path = base_dir / path
    file = discord.File(str(path), filename=path.name)
    embed.set_image(url=f"attachment://{path.name}")
    return embed, file


def build_attachment_list_embed(attachments: List[AttachmentRecord], term: str = "") -> discord.Embed:
    title = f"📎 Attachments matching '{term}'" if term.strip() else "📎 Attachments"
    embed = discord.Embed(title=title, color=COLOR_INFO)
    if not attachments:
        embed.description = "No attachments found."
        return embed
    shown = attachments[:MAX_SELECT_OPTIONS]
    embed.description = "\n".join(f"• **{att.index}**" for att in shown)
    if len(attachments) > len(shown):
        embed.description += f"\n... and {len(attachments) - len(shown)} more"
    embed.set_footer(text="Pick one below to view it")
    return embed


def skipped_labels(controller: QuizController, channel_id: int) -> List[Tuple[int, str]]:
    session = controller.get_session(channel_id)
    if session is None:
        return []
    questions = session.questions
    return [(position, questions[position].index) for position in session.skipped]


def render_session(
    controller: QuizController,
    channel_id: int,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Build the message payload for a channel's session in its current state.

    Returns:
        Keyword arguments for send_message / edit_message (embed and view)
    """
    session = controller.get_session(channel_id)
    if session is None:
        return {
            'embed': build_message_embed(
                "No quiz is running here. Start one with /quiz_all, /quiz_random or /quiz_search.",
                "ℹ️ No Active Quiz",
                COLOR_INFO
            ),
            'view': None
        }

    if session.is_complete:
        return {
            'embed': build_results_embed(session.score()),
            'view': ResultsView(controller, channel_id, timeout=timeout)
        }

    snapshot = session.snapshot()
    skipped = skipped_labels(controller, channel_id)
    return {
        'embed': build_question_embed(
            snapshot,
            [label for _, label in skipped],
            controller.has_attachment(snapshot.question),
        ),
        'view': QuestionView(controller, channel_id, snapshot, skipped, timeout=timeout)
    }


async def send_ephemeral_error(interaction: discord.Interaction, message: str, title: str = "❌ Error") -> None:
    """Send an ephemeral error, falling back to a followup when the response is used."""
    embed = build_message_embed(message, title)
    try:
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)
    except discord.HTTPException as e:
        logger.error(f"Failed to send error response: {e}")


async def send_attachment(interaction: discord.Interaction, attachment: AttachmentRecord, base_dir: Path) -> None:
    try:
        embed, file = build_attachment_payload(attachment, base_dir)
    except OSError as e:
        logger.error(f"Failed to open attachment {attachment.image_ref} for #{attachment.index}: {e}")
        await send_ephemeral_error(interaction, f"The image for #{attachment.index} could not be opened.")
        return

    kwargs = {'embed': embed, 'ephemeral': True}
    if file is not None:
        kwargs['file'] = file
    await interaction.response.send_message(**kwargs)


class SessionView(discord.ui.View):
    """Base view bound to one channel's session."""

    def __init__(self, controller: QuizController, channel_id: int, timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self.controller = controller
        self.channel_id = channel_id
        self.timeout_seconds = timeout

    async def refresh(self, interaction: discord.Interaction) -> None:
        """Re-render the message this view is attached to from the current session."""
        payload = render_session(self.controller, self.channel_id, timeout=self.timeout_seconds)
        await interaction.response.edit_message(**payload)

    async def apply_result(self, interaction: discord.Interaction, result: Dict[str, Any]) -> None:
        if not result['success']:
            await send_ephemeral_error(interaction, result['user_message'])
            return
        await self.refresh(interaction)

    async def on_error(self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item) -> None:
        logger.error(f"Error handling {type(item).__name__} in channel {self.channel_id}: {error}", exc_info=error)
        await send_ephemeral_error(interaction, "Something went wrong. Please try again.")


class AnswerButton(discord.ui.Button):
    def __init__(self, label: str, disabled: bool):
        super().__init__(style=discord.ButtonStyle.primary, label=label, disabled=disabled, row=0)
        self.answer_label = label

    async def callback(self, interaction: discord.Interaction) -> None:
        view: SessionView = self.view
        result = view.controller.answer(view.channel_id, self.answer_label)
        await view.apply_result(interaction, result)


class SkippedSelect(discord.ui.Select):
    """Jump straight to one of the skipped questions."""

    def __init__(self, skipped: List[Tuple[int, str]]):
        options = [
            discord.SelectOption(label=shorten(f"Question #{label}", 100), value=str(position))
            for position, label in skipped[:MAX_SELECT_OPTIONS]
        ]
        placeholder = "Go to a skipped question…"
        if len(skipped) > MAX_SELECT_OPTIONS:
            placeholder = f"Go to a skipped question (first {MAX_SELECT_OPTIONS} of {len(skipped)})…"
        super().__init__(placeholder=placeholder, options=options, row=3)

    async def callback(self, interaction: discord.Interaction) -> None:
        view: SessionView = self.view
        result = view.controller.go_to_question(view.channel_id, int(self.values[0]))
        await view.apply_result(interaction, result)


class QuestionView(SessionView):
    """Answer, navigation and attachment buttons for the current question."""

    def __init__(
        self,
        controller: QuizController,
        channel_id: int,
        snapshot: SessionSnapshot,
        skipped: List[Tuple[int, str]],
        timeout: Optional[float] = None,
    ):
        super().__init__(controller, channel_id, timeout=timeout)
        for label in ANSWER_OPTIONS:
            self.add_item(AnswerButton(label, disabled=snapshot.answered))

        self.previous_button.disabled = snapshot.position == 0
        self.skip_button.disabled = snapshot.answered
        self.attachment_button.disabled = not controller.has_attachment(snapshot.question)

        if skipped:
            self.add_item(SkippedSelect(skipped))

    @discord.ui.button(label="◀ Previous", style=discord.ButtonStyle.secondary, row=1)
    async def previous_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        result = self.controller.previous_question(self.channel_id)
        await self.apply_result(interaction, result)

    @discord.ui.button(label="Skip ⏭", style=discord.ButtonStyle.secondary, row=1)
    async def skip_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        result = self.controller.skip_question(self.channel_id)
        await self.apply_result(interaction, result)

    @discord.ui.button(label="Next ▶", style=discord.ButtonStyle.success, row=1)
    async def next_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        result = self.controller.next_question(self.channel_id)
        if result['success'] and result['needs_confirmation']:
            quiz_message = interaction.message
            asked_session = self.controller.get_session(self.channel_id)
            asked_position = result['snapshot'].position

            async def confirm(confirm_interaction: discord.Interaction) -> None:
                session = self.controller.get_session(self.channel_id)
                # The prompt belongs to one question of one session
                if session is not asked_session or session.position != asked_position:
                    await send_ephemeral_error(
                        confirm_interaction,
                        "This question is no longer current. Press Next again to skip the question you are on."
                    )
                    return
                skip_result = self.controller.skip_question(self.channel_id)
                if not skip_result['success']:
                    await send_ephemeral_error(confirm_interaction, skip_result['user_message'])
                    return
                await confirm_interaction.response.edit_message(content="⏭️ Question skipped.", view=None)
                payload = render_session(self.controller, self.channel_id, timeout=self.timeout_seconds)
                await quiz_message.edit(**payload)

            await interaction.response.send_message(
                "You haven't answered this question yet. Do you want to skip it?",
                view=ConfirmView(confirm),
                ephemeral=True
            )
            return
        await self.apply_result(interaction, result)

    @discord.ui.button(label="📎 Attachment", style=discord.ButtonStyle.secondary, row=2)
    async def attachment_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        attachment = self.controller.get_current_attachment(self.channel_id)
        if attachment is None:
            await send_ephemeral_error(interaction, "No attachment found for this question.", "ℹ️ No Attachment")
            return
        await send_attachment(interaction, attachment, self.controller.data_manager.attachment_file.parent)

    @discord.ui.button(label="End quiz", style=discord.ButtonStyle.danger, row=2)
    async def end_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        quiz_message = interaction.message

        async def confirm(confirm_interaction: discord.Interaction) -> None:
            result = self.controller.end_quiz(self.channel_id)
            if not result['success']:
                await send_ephemeral_error(confirm_interaction, result['user_message'])
                return
            await confirm_interaction.response.edit_message(content="🏁 Quiz ended.", view=None)
            await quiz_message.edit(
                embed=build_results_embed(result['report']),
                view=ResultsView(self.controller, self.channel_id, timeout=self.timeout_seconds)
            )

        await interaction.response.send_message(
            "Are you sure you want to end the quiz?",
            view=ConfirmView(confirm),
            ephemeral=True
        )


class ResultsView(SessionView):
    """Shown with the final score: review the last question or start over."""

    @discord.ui.button(label="◀ Review", style=discord.ButtonStyle.secondary)
    async def review_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = self.controller.get_session(self.channel_id)
        if session is None:
            await send_ephemeral_error(interaction, "This quiz has been closed.")
            return
        # A quiz ended early is still on an unfinished question
        if session.is_complete:
            self.controller.previous_question(self.channel_id)
        await self.refresh(interaction)

    @discord.ui.button(label="New quiz", style=discord.ButtonStyle.primary)
    async def new_quiz_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.controller.discard_session(self.channel_id)
        self.stop()
        await interaction.response.edit_message(
            embed=build_message_embed(
                "Choose a mode: /quiz_all, /quiz_random [count] or /quiz_search <term>.",
                "🎯 New Quiz",
                COLOR_INFO
            ),
            view=None
        )


class ConfirmView(discord.ui.View):
    """Yes/No prompt; the action runs only on Yes."""

    def __init__(self, on_confirm: Callable[[discord.Interaction], Awaitable[None]], timeout: float = 60):
        super().__init__(timeout=timeout)
        self.on_confirm = on_confirm

    @discord.ui.button(label="Yes", style=discord.ButtonStyle.danger)
    async def yes_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.stop()
        await self.on_confirm(interaction)

    @discord.ui.button(label="No", style=discord.ButtonStyle.secondary)
    async def no_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.stop()
        await interaction.response.edit_message(content="Okay, staying on this question.", view=None)


class AttachmentPicker(discord.ui.View):
    """Select menu over a list of attachments, each shown on pick."""

    def __init__(self, attachments: List[AttachmentRecord], base_dir: Path, timeout: float = 300):
        super().__init__(timeout=timeout)
        self.base_dir = base_dir
        # Select values must be unique; the first attachment of an index wins
        self._by_index: Dict[str, AttachmentRecord] = {}
        for att in attachments:
            self._by_index.setdefault(att.index, att)
        select = discord.ui.Select(
            placeholder="Choose a question…",
            options=[
                discord.SelectOption(label=index, value=index)
                for index in list(self._by_index)[:MAX_SELECT_OPTIONS]
            ]
        )
        select.callback = self._on_select
        self.select = select
        self.add_item(select)

    async def _on_select(self, interaction: discord.Interaction) -> None:
        attachment = self._by_index[self.select.values[0]]
        await send_attachment(interaction, attachment, self.base_dir)
