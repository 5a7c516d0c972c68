"""Dice rolling tool."""

import random

from pydantic import BaseModel, Field

from toolstream.tools.base import ToolDefinition


class RollDiceInput(BaseModel):
    """Roll a die with the given number of sides and return the result."""

    sides: int = Field(..., ge=2, le=1000, description="Number of sides on the die", examples=[6, 20])


def create_roll_dice_tool(rng: random.Random | None = None) -> ToolDefinition:
    roller = rng or random.Random()

    async def roll_dice_handler(params: RollDiceInput) -> str:
        return str(roller.randint(1, params.sides))

    return ToolDefinition.from_model("roll_dice", RollDiceInput, roll_dice_handler)
