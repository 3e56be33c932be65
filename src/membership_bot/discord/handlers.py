"""Interaction dispatch: the verification workflow as a state machine.

Every Discord callback is independent. The current step is recovered from the
interaction variant and its ``custom_id``; anything else the step needs comes
from the shared store. No conversation state is held between requests.

Workflow:
    /setup                      → store role ids, ask for the sheet URL
    modal-setup                 → store + validate the sheet, post entry buttons
    manual-verify               → ask for an email
    modal-verify-email          → issue a passcode, offer "enter code" button
    verify-email:{email}        → ask for the passcode
    modal-confirm-code:{email}  → check passcode, check roster, grant roles
    GET /oauth?code=            → identity, roster, roles, HTML page
"""

import logging

import httpx
import redis.asyncio as redis
from fastapi import BackgroundTasks

from membership_bot import templates
from membership_bot.discord import components, custom_ids
from membership_bot.discord.oauth import DiscordOAuthClient
from membership_bot.discord.roles import RoleGrantClient
from membership_bot.emails import normalize_email
from membership_bot.errors import (
    ConfigurationError,
    MembershipBotError,
    OAuthError,
    RosterFetchError,
    SetupValidationError,
    TransientExternalError,
)
from membership_bot.models.interaction import (
    CommandInteraction,
    ComponentInteraction,
    Interaction,
    ModalSubmitInteraction,
    PingInteraction,
)
from membership_bot.models.membership import RoleBindings
from membership_bot.passcodes import CODE_LENGTH, PasscodeStore
from membership_bot.sheets import SheetsClient, check_membership, extract_sheet_id, validate_headings
from membership_bot.store import ConfigurationStore

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Welcome! Please verify your account to gain access to the correct private spaces."
)
GENERIC_FAILURE = "Something went wrong on our side. Please try again, or ping one of the admins."


class InteractionDispatcher:
    """Routes each decoded interaction to the step of the workflow it belongs to.

    Args:
        config: Role bindings and roster sheet id.
        passcodes: Issues and checks email passcodes.
        sheets: Reads the roster.
        oauth: Discord OAuth client; also supplies the "Verify me" link.
        roles: Grants Discord roles.
        guild_id: The community roles are granted in.
        apply_url: Where people not on the roster can apply.
    """

    def __init__(
        self,
        *,
        config: ConfigurationStore,
        passcodes: PasscodeStore,
        sheets: SheetsClient,
        oauth: DiscordOAuthClient,
        roles: RoleGrantClient,
        guild_id: str,
        apply_url: str,
    ):
        self._config = config
        self._passcodes = passcodes
        self._sheets = sheets
        self._oauth = oauth
        self._roles = roles
        self._guild_id = guild_id
        self._apply_url = apply_url

    async def dispatch(
        self, interaction: Interaction, background_tasks: BackgroundTasks | None = None
    ) -> dict:
        """Return the response body for one interaction. Never raises.

        Errors from collaborators are turned into messages here because
        Discord expects a 200 with content for every signed interaction.
        """
        try:
            if isinstance(interaction, PingInteraction):
                return components.pong()
            if isinstance(interaction, CommandInteraction):
                return await self._handle_command(interaction)
            if isinstance(interaction, ComponentInteraction):
                return self._handle_component(interaction)
            if isinstance(interaction, ModalSubmitInteraction):
                return await self._handle_modal(interaction, background_tasks)
        except ConfigurationError as exc:
            logger.error("Interaction needs configuration: %s", exc)
            return components.message(f"This bot isn't fully set up yet: {exc}.", ephemeral=True)
        except (MembershipBotError, httpx.HTTPError, redis.RedisError):
            logger.error("Interaction failed", exc_info=True)
            return components.message(GENERIC_FAILURE, ephemeral=True)

        logger.warning("Unhandled interaction type %s", interaction.type)
        return dict(components.FAILURE_BODY)

    # -- slash commands --

    async def _handle_command(self, interaction: CommandInteraction) -> dict:
        if interaction.name == "setup":
            return await self._start_setup(interaction)
        if interaction.name == "verify-email":
            return await self._check_email_command(interaction)
        logger.warning("Unknown command %s", interaction.name)
        return dict(components.FAILURE_BODY)

    async def _start_setup(self, interaction: CommandInteraction) -> dict:
        vetted = interaction.options.get("vetted-role", "")
        private = interaction.options.get("private-role", "")
        if not vetted or not private:
            return components.message(
                "Both a vetted role and a private role are required.", ephemeral=True
            )
        await self._config.save_role_bindings(
            RoleBindings(vetted_role_id=vetted, private_role_id=private)
        )
        return components.modal(
            custom_ids.SETUP_MODAL,
            "What Google Sheet do you want to use?",
            components.text_input(
                custom_ids.SHEET_URL_INPUT,
                "Google Sheet URL",
                placeholder="https://docs.google.com/spreadsheets/d/...",
            ),
        )

    async def _check_email_command(self, interaction: CommandInteraction) -> dict:
        """Admin lookup: report which lists an email is on, without granting anything."""
        email = normalize_email(interaction.options.get("email", ""))
        if not email:
            return components.message("Needed an email.", ephemeral=True)
        sheet_id = await self._config.sheet_id()
        try:
            membership = await check_membership(self._sheets, sheet_id, email)
        except RosterFetchError as exc:
            return components.message(
                f"Something went wrong checking membership. {exc}", ephemeral=True
            )
        return components.message(
            f"This email {'IS' if membership.is_vetted else 'is NOT'} a vetted member and "
            f"{'IS' if membership.is_private else 'is NOT'} a private member",
            ephemeral=True,
        )

    # -- button clicks --

    def _handle_component(self, interaction: ComponentInteraction) -> dict:
        step, email = custom_ids.parse(interaction.custom_id)

        if step == custom_ids.MANUAL_VERIFY:
            return components.modal(
                custom_ids.EMAIL_MODAL,
                "What email are you a member with?",
                components.text_input(
                    custom_ids.EMAIL_INPUT,
                    "Email",
                    placeholder="calvin@example.org",
                    max_length=custom_ids.MAX_EMAIL_LENGTH,
                ),
            )

        if step == custom_ids.ENTER_CODE and email:
            return components.modal(
                custom_ids.code_modal(email),
                "Confirmation code:",
                components.text_input(
                    custom_ids.CODE_INPUT,
                    "Confirmation code",
                    placeholder="0" * CODE_LENGTH,
                    min_length=CODE_LENGTH,
                    max_length=CODE_LENGTH,
                ),
            )

        logger.warning("Unknown component %s", interaction.custom_id)
        return dict(components.FAILURE_BODY)

    # -- modal submissions --

    async def _handle_modal(
        self, interaction: ModalSubmitInteraction, background_tasks: BackgroundTasks | None
    ) -> dict:
        step, email = custom_ids.parse(interaction.custom_id)

        if step == custom_ids.SETUP_MODAL:
            return await self._finish_setup(interaction.value(custom_ids.SHEET_URL_INPUT) or "")
        if step == custom_ids.EMAIL_MODAL:
            return await self._start_passcode(
                interaction.value(custom_ids.EMAIL_INPUT) or "", background_tasks
            )
        if step == custom_ids.CODE_MODAL and email:
            return await self._confirm_passcode(
                email, interaction.value(custom_ids.CODE_INPUT) or "", interaction.user_id
            )

        logger.warning("Unknown modal %s", interaction.custom_id)
        return dict(components.FAILURE_BODY)

    async def _finish_setup(self, sheet_url: str) -> dict:
        try:
            sheet_id = extract_sheet_id(sheet_url)
            await self._config.save_sheet_id(sheet_id)
            await validate_headings(self._sheets, sheet_id)
        except SetupValidationError as exc:
            logger.warning("Setup failed: %s", exc.reason.name)
            return components.message(f"Something broke! Here's all I know: '{exc.reason.value}'")

        return components.message(
            WELCOME_MESSAGE,
            components=[
                components.action_row(
                    components.link_button("Verify me", self._oauth.authorize_url()),
                    components.button(
                        "Manually verify email",
                        custom_ids.MANUAL_VERIFY,
                        style=components.ButtonStyle.SECONDARY,
                    ),
                )
            ],
        )

    async def _start_passcode(self, raw_email: str, background_tasks: BackgroundTasks | None) -> dict:
        email = normalize_email(raw_email)
        if "@" not in email or len(email) > custom_ids.MAX_EMAIL_LENGTH:
            return components.message("That doesn't look like an email address.", ephemeral=True)

        await self._passcodes.start(email, background_tasks)
        return components.message(
            "Thanks, check your email for a confirmation code! "
            "Make sure to check spam if you don't see it.",
            ephemeral=True,
            components=[
                components.action_row(
                    components.button("Enter verification code", custom_ids.enter_code(email))
                )
            ],
        )

    async def _confirm_passcode(self, raw_email: str, code: str, user_id: str | None) -> dict:
        email = normalize_email(raw_email)
        if not await self._passcodes.check(email, code):
            return components.update_message("That's not the right code! Try again?")

        try:
            bindings = await self._config.role_bindings()
            sheet_id = await self._config.sheet_id()
            membership = await check_membership(self._sheets, sheet_id, email)
        except ConfigurationError as exc:
            logger.error("Cannot finish verification: %s", exc)
            return components.update_message(
                f"Hmm you gave the right code, but {exc.missing} isn't configured. "
                "Ping one of the admins for help."
            )
        except TransientExternalError:
            logger.error("Roster check failed for %s", email, exc_info=True)
            return components.update_message(
                "Hmm you gave the right code, but something went wrong checking the member "
                "list. Ping one of the admins for help."
            )

        # the code stays usable until the roster has actually been read
        await self._passcodes.consume(email)

        if not membership.any:
            return components.update_message(
                f"That's the right code, but you're not on the list 👀 [Apply to join]({self._apply_url})",
                components=[],
            )

        if not user_id:
            logger.error("Interaction for %s carried no user id", email)
            return components.update_message(GENERIC_FAILURE)

        await self._roles.grant_tiers(membership, bindings, self._guild_id, user_id)
        return components.update_message(
            "Thank you! You've verified your email and have been granted access to private spaces ✨",
            components=[],
        )

    # -- OAuth redirect --

    async def complete_oauth(self, code: str) -> str:
        """Finish the OAuth flow and return the HTML page to show.

        Failures of the code exchange or identity lookup are not shown to the
        user; they get the neutral completion page and nothing is granted.
        """
        if not code:
            return templates.completion_page()
        try:
            identity = await self._oauth.identify(code)
        except OAuthError:
            logger.warning("OAuth identification failed", exc_info=True)
            return templates.completion_page()
        if not identity.email:
            logger.warning("OAuth identity %s has no email", identity.id)
            return templates.completion_page()
        if not identity.verified:
            logger.warning("OAuth identity %s has an unverified email", identity.id)

        try:
            bindings = await self._config.role_bindings()
            sheet_id = await self._config.sheet_id()
        except ConfigurationError as exc:
            logger.error("Couldn't load configuration for OAuth: %s", exc)
            return templates.missing_configuration_page()
        except redis.RedisError:
            logger.error("Store unavailable during OAuth", exc_info=True)
            return templates.membership_error_page()

        try:
            membership = await check_membership(self._sheets, sheet_id, identity.email)
        except RosterFetchError:
            logger.error("Roster check failed during OAuth", exc_info=True)
            return templates.membership_error_page()

        if not membership.any:
            logger.info("Email not found in member lists")
            return templates.not_found_page(identity.email)

        await self._roles.grant_tiers(membership, bindings, self._guild_id, identity.id)
        return templates.success_page()
