"""Console client for the job board application."""
import argparse
import asyncio
import sys
from typing import Callable, Optional, Sequence

from ..shared.dto import ChatMessage, JobType, UserRole
from ..shared.logging_config import configure_logging
from . import storage
from .api import APIClient
from .config import LOG_FILE, load_config
from .remote_store import HttpRemoteStore, RemoteStore
from .sessions import auth, chat, jobs, profile
from .state import StateContainer

logger = configure_logging("jobboard.client", LOG_FILE)


async def ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def wait_for(container: StateContainer, predicate: Callable[[object], bool], timeout: float = 15) -> bool:
    """Wait until ``predicate(state)`` holds; False on timeout."""
    if predicate(container.current):
        return True
    reached = asyncio.Event()
    unsubscribe = container.observe(lambda state: reached.set() if predicate(state) else None)
    try:
        await asyncio.wait_for(reached.wait(), timeout)
        return True
    except asyncio.TimeoutError:
        print("Still waiting for the server...")
        return False
    finally:
        unsubscribe()


async def settle(container: StateContainer) -> None:
    await wait_for(container, lambda s: not s.loading)
    if container.error:
        print(f"Error: {container.error}")
        container.clear_error()


class ConsoleClient:
    """Interactive console front-end driving the screen sessions."""

    def __init__(self, store: RemoteStore):
        self.store = store

    async def sign_in(self) -> bool:
        session = auth.AuthSession(self.store)
        try:
            while not session.state.authenticated:
                print("\nMenu: [r]egister, [l]ogin, [q]uit")
                choice = await ask("> ")
                if choice == "q":
                    return False
                session.dispatch(auth.UpdateEmail(await ask("Email: ")))
                session.dispatch(auth.UpdatePassword(await ask("Password: ")))
                if choice == "r":
                    session.dispatch(auth.UpdateConfirmPassword(await ask("Confirm password: ")))
                    session.dispatch(auth.UpdateName(await ask("Name: ")))
                    employer = (await ask("Are you an employer? [y/N]: ")).lower() == "y"
                    session.dispatch(auth.SelectRole(UserRole.EMPLOYER if employer else UserRole.JOB_SEEKER))
                    session.dispatch(auth.Register())
                elif choice == "l":
                    session.dispatch(auth.Login())
                else:
                    continue
                await settle(session.container)
            print("Signed in.")
            return True
        finally:
            await session.close()

    async def browse_jobs(self) -> None:
        session = jobs.JobBoardSession(self.store)
        try:
            await settle(session.container)
            while True:
                for idx, job in enumerate(session.state.visible_jobs, start=1):
                    print(f"{idx}. {job.title} at {job.company} ({job.location}, {job.type.value})")
                if not session.state.visible_jobs:
                    print("No jobs to show.")
                print("\nJobs: [f]ilter, [v]iew <n>, [p]ost, [r]efresh, [b]ack")
                cmd = await ask("> ")
                if cmd == "b":
                    return
                if cmd == "f":
                    session.dispatch(jobs.UpdateSearchQuery(await ask("Search: ")))
                elif cmd.startswith("v"):
                    await self._show_job(session, cmd[1:].strip())
                elif cmd == "p":
                    await self._post_job(session)
                elif cmd == "r":
                    session.dispatch(jobs.LoadJobs())
                    await settle(session.container)
        finally:
            await session.close()

    async def _show_job(self, session: jobs.JobBoardSession, index: str) -> None:
        visible = session.state.visible_jobs
        job_id = visible[int(index) - 1].id if index.isdigit() and 0 < int(index) <= len(visible) else None
        session.dispatch(jobs.OpenJob(job_id))
        await settle(session.container)
        job = session.state.selected_job
        if job:
            print(f"\n{job.title} - {job.company}\n{job.location} | {job.salary}\n\n{job.description}")
            for line in job.requirements:
                print(f"  * {line}")
            session.dispatch(jobs.CloseJob())

    async def _post_job(self, session: jobs.JobBoardSession) -> None:
        for name in ("title", "company", "description", "location", "salary"):
            session.dispatch(jobs.UpdateJobField(name, await ask(f"{name.capitalize()}: ")))
        session.dispatch(jobs.UpdateJobField("requirements", (await ask("Requirements (';' separated): ")).replace(";", "\n")))
        kind = (await ask("Type [FULL_TIME/PART_TIME/CONTRACT/FREELANCE]: ")).upper() or JobType.FULL_TIME.value
        if kind in JobType.__members__:
            session.dispatch(jobs.UpdateJobField("type", JobType[kind]))
        session.dispatch(jobs.PostJob())
        await settle(session.container)
        if session.state.posted:
            print("Job posted.")

    async def edit_profile(self) -> None:
        session = profile.ProfileSession(self.store)
        try:
            await settle(session.container)
            while True:
                current = session.state.profile
                if current:
                    print(f"\n{current.name} <{current.email}> ({current.role.value})")
                print("Profile: [e]dit, [o] logout, [b]ack")
                cmd = await ask("> ")
                if cmd == "b":
                    return
                if cmd == "e":
                    session.dispatch(profile.ToggleEditMode(True))
                    session.dispatch(profile.UpdateName(await ask(f"Name [{session.state.draft_name}]: ") or session.state.draft_name))
                    session.dispatch(profile.UpdateEmail(await ask(f"Email [{session.state.draft_email}]: ") or session.state.draft_email))
                    session.dispatch(profile.SaveProfile())
                    await settle(session.container)
                if cmd == "o":
                    session.dispatch(profile.Logout())
                    await wait_for(session.container, lambda s: s.logged_out)
                    print("Logged out.")
                    return
        finally:
            await session.close()

    async def open_chat(self) -> None:
        session = chat.ChatSession(self.store)
        me = self.store.current_user_id()

        def render(messages: Sequence[ChatMessage]) -> None:
            for msg in messages:
                who = "(you)" if msg.sender_id == me else "them"
                print(f"[{msg.timestamp:%H:%M}] {who}: {msg.content}")

        stop_render = session.container.watch(lambda s: s.messages, render)
        try:
            await settle(session.container)
            while True:
                state = session.state
                if state.selected_room is None:
                    for idx, room in enumerate(state.rooms, start=1):
                        print(f"{idx}. {room.last_message_preview or '(no messages)'}")
                    print("\nChat: [o]pen <n>, [n]ew <email>, [b]ack")
                else:
                    print("\nRoom: [s]end, [l]eave")
                cmd = await ask("> ")
                if cmd == "b":
                    return
                if cmd.startswith("o"):
                    index = cmd[1:].strip()
                    if index.isdigit() and 0 < int(index) <= len(state.rooms):
                        session.dispatch(chat.SelectRoom(state.rooms[int(index) - 1]))
                elif cmd.startswith("n"):
                    session.dispatch(chat.StartChat(cmd[1:].strip()))
                elif cmd == "s":
                    session.dispatch(chat.UpdateDraft(await ask("Message: ")))
                    session.dispatch(chat.SendMessage())
                elif cmd == "l":
                    session.dispatch(chat.UnselectRoom())
                await settle(session.container)
        finally:
            stop_render()
            await session.close()

    async def run(self) -> None:
        while True:
            if self.store.current_user_id() is None and not await self.sign_in():
                return
            print("\nUser menu: [j]obs, [c]hat, [p]rofile, [q]uit")
            sub = await ask("> ")
            if sub == "q":
                return
            if sub == "j":
                await self.browse_jobs()
            if sub == "c":
                await self.open_chat()
            if sub == "p":
                await self.edit_profile()


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="JobBoard console client")
    parser.add_argument("--server", help="Server URL (e.g. http://127.0.0.1:8000)")
    args = parser.parse_args(argv)

    config = load_config(args.server)
    storage.store_server_url(config.server_url)
    store = HttpRemoteStore(APIClient(config.server_url, timeout=config.request_timeout), poll_interval=config.poll_interval)
    logger.info("Starting console client against %s", config.server_url)
    print("JobBoard Client")
    try:
        asyncio.run(ConsoleClient(store).run())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
