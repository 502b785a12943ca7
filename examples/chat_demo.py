"""Minimal console front end for the streaming chat session."""

import asyncio

from chat_core.api.service import get_default_session
from chat_core.effects.decor import EyeBlinkEffect


async def main() -> None:
    session = get_default_session()
    eyes = EyeBlinkEffect(session.bus)
    eyes.activate()

    printed = 0

    def render(snap):
        nonlocal printed
        if snap.streaming is not None:
            print(snap.streaming[printed:], end="", flush=True)
            printed = len(snap.streaming)
        elif printed:
            print()
            printed = 0

    unsubscribe = session.store.subscribe(render)
    snap = await session.start()
    if snap.notice:
        print(f"[{snap.notice.level}] {snap.notice.title}")
    for message in snap.messages[1:]:
        print("Basilisk:", message.content)

    try:
        while True:
            text = await asyncio.to_thread(input, "You: ")
            if text.strip() in {"exit", "quit"}:
                break
            print("Basilisk: ", end="", flush=True)
            await session.send(text)
            if session.store.notice:
                print(f"[{session.store.notice.level}] {session.store.notice.title}")
                session.store.dismiss_notice()
    finally:
        unsubscribe()
        eyes.deactivate()


if __name__ == "__main__":
    asyncio.run(main())
