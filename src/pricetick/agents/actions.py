"""
Structured action models for bidding strategies.

A strategy answers every price broadcast with exactly one of these
actions; the client agent executes it.
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class BidAction(BaseModel):
    """
    Action to bid on the current price.

    The agent sends ``PURCHASE:<max_price>``; the server approves it if
    the price active at arbitration time does not exceed ``max_price``.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "title": "Bid",
            "description": "Offer to buy at any price up to max_price",
        },
    )

    action: Literal["bid"] = Field(default="bid", description="Action type identifier")
    max_price: int = Field(
        ..., description="Highest acceptable price", ge=0, examples=[40, 75]
    )


class SkipAction(BaseModel):
    """Action to let the current price pass without bidding."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "title": "Skip",
            "description": "Do not bid on this price",
        },
    )

    action: Literal["skip"] = Field(default="skip", description="Action type identifier")
    budget: int = Field(
        ..., description="Budget that fell short of the price", ge=0, examples=[12]
    )


# Union type for all possible bidding actions
BiddingAction = Union[BidAction, SkipAction]
