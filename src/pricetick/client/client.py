"""
Client agent - the buying side of the purchase protocol.

Each agent owns one connection to the server and runs one control loop:
react to price broadcasts, bid when its strategy says so, count approved
purchases, and signal completion once the target is reached.
"""

import logging
import time
from typing import Optional

from ..agents import BiddingStrategy, BidAction, RandomBudgetStrategy
from ..config import Settings
from ..core.errors import MalformedMessage, TransportError
from ..core.types import AgentResult, AgentState
from ..protocol.messages import (
    MessageType,
    ParsedMessage,
    create_finished_message,
    create_purchase_message,
    parse_message,
)
from ..transport import Channel

logger = logging.getLogger(__name__)


def default_client_id() -> str:
    """Client id derived from the current time in milliseconds."""
    return f"Client-{int(time.time() * 1000)}"


class ClientAgent:
    """
    Per-connection purchase loop.

    State machine:
        CONNECTED -> AWAITING_PRICE -> (BIDDING | SKIPPING) -> AWAITING_PRICE
        -> ... -> FINISHED

    Any transport error, end of stream or malformed server message ends
    the loop without a completion signal. The agent only closes its own
    channel; it never reports failures to the server.
    """

    def __init__(
        self,
        client_id: str,
        channel: Channel,
        strategy: Optional[BiddingStrategy] = None,
        target_purchases: int = 10,
    ):
        """
        Initialize client agent.

        Args:
            client_id: Name used in logs
            channel: Open channel to the server; the agent takes ownership
            strategy: Bidding strategy (random budget in [10, 75] if None)
            target_purchases: Approved purchases needed to finish
        """
        if target_purchases < 1:
            raise ValueError("target_purchases must be at least 1")

        self.client_id = client_id
        self._channel = channel
        self.strategy = strategy or RandomBudgetStrategy()
        self.target_purchases = target_purchases
        self.result = AgentResult(client_id=client_id, state=AgentState.CONNECTED)

    @property
    def state(self) -> AgentState:
        return self.result.state

    @property
    def approved(self) -> int:
        return self.result.approved

    async def run(self) -> AgentResult:
        """
        Run the control loop until finished or disconnected.

        Returns:
            AgentResult summary; ``result.finished`` tells whether the target
            was reached
        """
        self.result.state = AgentState.AWAITING_PRICE

        try:
            while self.state is not AgentState.FINISHED:
                message = await self._channel.receive()
                if message is None:
                    logger.warning(f"[ClientAgent] {self.client_id} - Connection closed by server")
                    break
                await self._handle_message(parse_message(message))

        except MalformedMessage as e:
            logger.error(f"[ClientAgent] {self.client_id} - Malformed message from server: {e}")
        except TransportError as e:
            logger.error(f"[ClientAgent] {self.client_id} - Connection error: {e}")
        finally:
            await self._channel.close()

        return self.result

    async def _handle_message(self, message: ParsedMessage):
        if message.message_type is MessageType.PRICE:
            await self._handle_price(message.value)

        elif message.message_type is MessageType.APPROVED:
            self.result.approved += 1
            logger.info(
                f"[ClientAgent] {self.client_id} - Purchase number {self.result.approved} APPROVED"
            )
            if self.result.approved >= self.target_purchases:
                await self._finish()

        elif message.message_type is MessageType.DENIED:
            self.result.denied += 1
            self.result.state = AgentState.AWAITING_PRICE
            logger.info(f"[ClientAgent] {self.client_id} - Purchase DENIED")

        else:
            raise MalformedMessage(message.raw, "unexpected message from server")

    async def _handle_price(self, price: int):
        self.result.prices_seen += 1
        action = await self.strategy.decide(self.client_id, price)

        if isinstance(action, BidAction):
            self.result.state = AgentState.BIDDING
            logger.info(
                f"[ClientAgent] {self.client_id} - Price: {price}, budget: {action.max_price}. "
                f"Sending purchase request"
            )
            await self._send(create_purchase_message(action.max_price))
            self.result.bids_sent += 1
        else:
            self.result.state = AgentState.SKIPPING
            self.result.skipped += 1
            logger.info(
                f"[ClientAgent] {self.client_id} - Price: {price}, budget: {action.budget}. "
                f"Too expensive, skipping"
            )

        self.result.state = AgentState.AWAITING_PRICE

    async def _finish(self):
        logger.info(f"[ClientAgent] {self.client_id} - COMPLETED {self.target_purchases} PURCHASES")
        await self._send(create_finished_message())
        self.result.state = AgentState.FINISHED

    async def _send(self, message: str):
        if not await self._channel.send(message):
            raise TransportError(f"could not send {message!r} to server")


async def run_client(
    client_id: Optional[str] = None,
    settings: Optional[Settings] = None,
    strategy: Optional[BiddingStrategy] = None,
) -> Optional[AgentResult]:
    """
    Connect to the server and run one client agent to completion.

    Args:
        client_id: Client name (time-based if None)
        settings: Connection and bidding settings (defaults if None)
        strategy: Bidding strategy (random budget from settings if None)

    Returns:
        AgentResult, or None if the server could not be reached
    """
    settings = settings or Settings()
    client_id = client_id or default_client_id()

    try:
        channel = await Channel.connect(settings.host, settings.port, name=client_id)
    except TransportError as e:
        logger.error(f"[ClientAgent] {client_id} - {e}")
        return None

    logger.info(f"[ClientAgent] {client_id} connected to server at {settings.host}:{settings.port}")

    agent = ClientAgent(
        client_id=client_id,
        channel=channel,
        strategy=strategy
        or RandomBudgetStrategy(settings.min_budget, settings.max_budget),
        target_purchases=settings.target_purchases,
    )
    return await agent.run()
