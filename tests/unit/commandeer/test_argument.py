"""Tests for commandeer/commands/argument.py"""

import math
from unittest.mock import AsyncMock, MagicMock

import hikari
import pytest

from commandeer.commands.argument import Argument, ArgumentInfo, CancelReason
from commandeer.types.union import ArgumentUnionType


class TestArgumentCreation:
    """Test building arguments from ArgumentInfo."""

    def test_required_derived_from_default(self, registry):
        """Test an argument without a default is required."""
        required = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string"))
        optional = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string", default="x"))

        assert required.required is True
        assert optional.required is False
        assert optional.has_default is True

    def test_label_defaults_to_key(self, registry):
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer"))
        assert argument.label == "amount"
        assert argument.option_type is hikari.OptionType.INTEGER

    def test_unregistered_type_raises(self, registry):
        """Test referencing a type that isn't registered."""
        with pytest.raises(ValueError):
            Argument(registry, ArgumentInfo(key="x", prompt="X?", type="nope"))

    def test_missing_type_and_custom_functions_raises(self, registry):
        """Test an argument needs a type or both validate and parse."""
        with pytest.raises(ValueError):
            Argument(registry, ArgumentInfo(key="x", prompt="X?", validate=lambda *args: True))

    def test_union_type_registered_on_first_use(self, registry):
        """Test a combined type ID creates and registers a union type."""
        argument = Argument(registry, ArgumentInfo(key="x", prompt="X?", type="integer|string"))

        assert isinstance(argument.type, ArgumentUnionType)
        assert registry.types["integer|string"] is argument.type

        again = Argument(registry, ArgumentInfo(key="y", prompt="Y?", type=["integer", "string"]))
        assert again.type is argument.type

    def test_timeout(self, registry):
        """Test zero or infinite wait means no timeout."""
        assert Argument(registry, ArgumentInfo(key="x", prompt="X?", type="string", wait=15)).timeout == 15
        assert Argument(registry, ArgumentInfo(key="x", prompt="X?", type="string", wait=0)).timeout is None
        assert Argument(registry, ArgumentInfo(key="x", prompt="X?", type="string", wait=math.inf)).timeout is None


class TestArgumentObtain:
    """Test obtaining single values."""

    @pytest.mark.asyncio
    async def test_valid_provided_value_needs_no_prompt(self, registry, mock_context):
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer"))

        result = await argument.obtain(mock_context, "42")

        assert result.value == 42
        assert result.cancelled is None
        assert result.prompts == []
        mock_context.send_prompt.assert_not_called()

    @pytest.mark.asyncio
    async def test_optional_missing_value_uses_default(self, registry, mock_context):
        """Test an optional argument with no value resolves its default without prompting."""
        argument = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string", default="fallback"))

        result = await argument.obtain(mock_context, None)

        assert result.value == "fallback"
        assert result.prompts == []
        mock_context.send_prompt.assert_not_called()

    @pytest.mark.asyncio
    async def test_optional_zero_is_not_replaced_by_default(self, registry, mock_context):
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer", default=5))

        result = await argument.obtain(mock_context, "0")

        assert result.value == 0
        assert result.prompts == []

    @pytest.mark.asyncio
    async def test_callable_default(self, registry, mock_context):
        async def default(ctx, argument):
            return f"{argument.key}-default"

        argument = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string", default=default))

        result = await argument.obtain(mock_context, "")
        assert result.value == "text-default"

    @pytest.mark.asyncio
    async def test_prompts_until_valid(self, registry, mock_context, reply_message):
        """Test invalid answers are re-prompted and the valid one parsed."""
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer"))
        mock_context.wait_for_reply.side_effect = [reply_message("lots"), reply_message("7")]

        result = await argument.obtain(mock_context, None)

        assert result.value == 7
        assert len(result.prompts) == 2
        assert len(result.answers) == 2
        first_embed = mock_context.send_prompt.call_args_list[0].args[0]
        second_embed = mock_context.send_prompt.call_args_list[1].args[0]
        assert first_embed.fields[0].name == "How much?"
        assert "invalid amount" in second_embed.description

    @pytest.mark.asyncio
    async def test_validation_message_shown(self, registry, mock_context, reply_message):
        """Test a validator's reason is shown in the re-prompt."""
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer", max=10))
        mock_context.wait_for_reply.side_effect = [reply_message("5")]

        result = await argument.obtain(mock_context, "50")

        assert result.value == 5
        embed = mock_context.send_prompt.call_args.args[0]
        assert "below or exactly 10" in embed.description

    @pytest.mark.asyncio
    async def test_custom_error_replaces_reason(self, registry, mock_context, reply_message):
        argument = Argument(
            registry, ArgumentInfo(key="amount", prompt="How much?", type="integer", error="Numbers only!")
        )
        mock_context.wait_for_reply.side_effect = [reply_message("3")]

        await argument.obtain(mock_context, "abc")

        embed = mock_context.send_prompt.call_args.args[0]
        assert embed.description == "**Numbers only!**"

    @pytest.mark.asyncio
    async def test_blank_reply_is_reprompted(self, registry, mock_context, reply_message):
        """Test a whitespace-only answer counts as no answer."""
        argument = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string"))
        mock_context.wait_for_reply.side_effect = [reply_message("   "), reply_message("hello")]

        result = await argument.obtain(mock_context, None)

        assert result.value == "hello"
        assert len(result.prompts) == 2
        assert len(result.answers) == 2
        assert mock_context.send_prompt.call_args.args[0].fields[0].name == "Text?"

    @pytest.mark.asyncio
    async def test_cancel_keyword(self, registry, mock_context, reply_message):
        argument = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string"))
        mock_context.wait_for_reply.side_effect = [reply_message("CANCEL")]

        result = await argument.obtain(mock_context, None)

        assert result.cancelled is CancelReason.USER
        assert len(result.prompts) == 1
        assert len(result.answers) == 1

    @pytest.mark.asyncio
    async def test_timeout_cancels(self, registry, mock_context):
        argument = Argument(registry, ArgumentInfo(key="text", prompt="Text?", type="string"))
        mock_context.wait_for_reply.return_value = None

        result = await argument.obtain(mock_context, None)

        assert result.cancelled is CancelReason.TIME
        assert len(result.prompts) == 1
        assert result.answers == []

    @pytest.mark.asyncio
    async def test_prompt_limit(self, registry, mock_context, reply_message):
        """Test collection stops once the prompt limit is reached."""
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer"))
        mock_context.wait_for_reply.side_effect = [reply_message("nope")]

        result = await argument.obtain(mock_context, None, prompt_limit=1)

        assert result.cancelled is CancelReason.PROMPT_LIMIT
        assert len(result.prompts) == 1

    @pytest.mark.asyncio
    async def test_zero_prompt_limit_cancels_without_prompting(self, registry, mock_context):
        argument = Argument(registry, ArgumentInfo(key="amount", prompt="How much?", type="integer"))

        result = await argument.obtain(mock_context, "bad", prompt_limit=0)

        assert result.cancelled is CancelReason.PROMPT_LIMIT
        assert result.prompts == []
        mock_context.send_prompt.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_validate_and_parse(self, registry, mock_context):
        validate = MagicMock(side_effect=lambda value, ctx, arg: value.startswith("#"))
        parse = AsyncMock(side_effect=lambda value, ctx, arg: value[1:])
        argument = Argument(registry, ArgumentInfo(key="tag", prompt="Tag?", validate=validate, parse=parse))

        result = await argument.obtain(mock_context, "#python")

        assert result.value == "python"
        validate.assert_called_once()


class TestInfiniteArgument:
    """Test obtaining any number of values."""

    @pytest.mark.asyncio
    async def test_prompted_values_until_finish(self, registry, mock_context, reply_message):
        """Test answering "one" then "finish" yields ["one"]."""
        argument = Argument(registry, ArgumentInfo(key="items", prompt="Items?", type="string", infinite=True))
        mock_context.wait_for_reply.side_effect = [reply_message("one"), reply_message("finish")]

        result = await argument.obtain(mock_context, [])

        assert result.value == ["one"]
        assert result.cancelled is None
        assert len(result.prompts) == 1
        assert len(result.answers) == 2

    @pytest.mark.asyncio
    async def test_provided_values(self, registry, mock_context):
        argument = Argument(registry, ArgumentInfo(key="numbers", prompt="Numbers?", type="integer", infinite=True))

        result = await argument.obtain(mock_context, ["1", "2", "3"])

        assert result.value == [1, 2, 3]
        mock_context.send_prompt.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_provided_value_is_reprompted(self, registry, mock_context, reply_message):
        argument = Argument(registry, ArgumentInfo(key="numbers", prompt="Numbers?", type="integer", infinite=True))
        mock_context.wait_for_reply.side_effect = [reply_message("2")]

        result = await argument.obtain(mock_context, ["1", "two"])

        assert result.value == [1, 2]
        embed = mock_context.send_prompt.call_args.args[0]
        assert '"two"' in embed.description

    @pytest.mark.asyncio
    async def test_finish_without_values_uses_default(self, registry, mock_context, reply_message):
        argument = Argument(
            registry,
            ArgumentInfo(key="items", prompt="Items?", type="string", infinite=True, default=["x"], required=True),
        )
        mock_context.wait_for_reply.side_effect = [reply_message("finish")]

        result = await argument.obtain(mock_context, [])

        assert result.value == ["x"]

    @pytest.mark.asyncio
    async def test_finish_without_values_or_default_cancels(self, registry, mock_context, reply_message):
        argument = Argument(registry, ArgumentInfo(key="items", prompt="Items?", type="string", infinite=True))
        mock_context.wait_for_reply.side_effect = [reply_message("finish")]

        result = await argument.obtain(mock_context, [])

        assert result.cancelled is CancelReason.USER

    @pytest.mark.asyncio
    async def test_cancel(self, registry, mock_context, reply_message):
        argument = Argument(registry, ArgumentInfo(key="items", prompt="Items?", type="string", infinite=True))
        mock_context.wait_for_reply.side_effect = [reply_message("one"), reply_message("cancel")]

        result = await argument.obtain(mock_context, [])

        assert result.cancelled is CancelReason.USER
        assert len(result.answers) == 2

    @pytest.mark.asyncio
    async def test_prompt_limit_per_value(self, registry, mock_context, reply_message):
        """Test an entry that stays invalid past the prompt limit cancels the whole argument."""
        argument = Argument(registry, ArgumentInfo(key="numbers", prompt="Numbers?", type="integer", infinite=True))
        mock_context.wait_for_reply.side_effect = [reply_message("y")]

        result = await argument.obtain(mock_context, ["1", "x"], prompt_limit=1)

        assert result.cancelled is CancelReason.PROMPT_LIMIT
        assert len(result.prompts) == 1
        assert len(result.answers) == 1
