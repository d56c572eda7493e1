# bookstore_service/app/storefront/events.py
import logging
from typing import Awaitable, Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[], Awaitable[None]]


class Subscription:
    def __init__(self, events: "CartEvents", listener: Listener):
        self._events = events
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._events._remove(self)
            self.active = False


class CartEvents:
    """
    In-process "cart changed" channel.

    Carries no payload: every listener re-reads the store on its own. Each
    surface subscribes on mount and unsubscribes on unmount.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def subscribe(self, listener: Listener) -> Subscription:
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        self._subscriptions.remove(subscription)

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self) -> None:
        # копия: слушатель может отписаться во время рассылки
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                await subscription.listener()
            except Exception:
                logger.exception("Cart listener %r failed", subscription.listener)
