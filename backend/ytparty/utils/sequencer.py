import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional


class Ticket:
    """A place in a TurnSequencer line."""

    def __init__(self, previous: Optional[asyncio.Future], done: asyncio.Future):
        self._previous = previous
        self._done = done

    async def turn(self) -> None:
        """Wait until every earlier ticket has been released."""
        if self._previous is not None:
            await asyncio.shield(self._previous)

    def release(self) -> None:
        # Never let a later ticket overtake an earlier one still in flight
        if self._previous is None or self._previous.done():
            self._finish()
        else:
            self._previous.add_done_callback(lambda _: self._finish())

    def _finish(self) -> None:
        if not self._done.done():
            self._done.set_result(None)


class TurnSequencer:
    """
    Hands out tickets in arrival order. Work done before `await ticket.turn()`
    may overlap between tickets; everything after it runs one ticket at a
    time, in the order the tickets were taken.

        async with sequencer.ticket() as ticket:
            data = await slow_io()
            await ticket.turn()
            mutate(data)
    """

    def __init__(self):
        self._tail: Optional[asyncio.Future] = None

    @asynccontextmanager
    async def ticket(self) -> AsyncIterator[Ticket]:
        done = asyncio.get_running_loop().create_future()
        ticket = Ticket(self._tail, done)
        self._tail = done
        try:
            yield ticket
        finally:
            ticket.release()
