"""
console/app.py -- Interactive back-office client.

ConsoleApp drives one SessionState from a single asyncio event loop, the
UI dispatcher. Prompts are read on a worker thread (asyncio.to_thread) so
the dashboard refresh task keeps running while the terminal waits for input.
Only coroutines on the loop touch the session or the dashboard panel.

Flow:
    first run (no users) -> administrator setup form
    login form -> main menu -> action -> main menu ... -> logout -> login form

Before every action the idle timeout is checked; an expired session is
logged out and returned to the login form.
"""

from __future__ import annotations

import asyncio
import getpass
import logging
from collections.abc import Callable

from auth.errors import AuthError, PersistenceUnavailableError
from auth.models import User
from auth.passwords import WEAK, password_strength
from auth.service import AuthService
from auth.validation import registration_errors
from console.menu import MenuEntry, visible_entries
from console.seed import seed_roles
from operations.dashboard import DashboardPanel, refresh_dashboard, refresh_loop
from operations.store import OperationsStore

logger = logging.getLogger("backoffice.console")

Prompt = Callable[[str], str]
Output = Callable[[str], None]


class ConsoleApp:
    """Terminal client. Input and output callables are injectable for tests.

    Usage:
        app = ConsoleApp(auth, operations, currency=settings.currency)
        asyncio.run(app.run())
    """

    def __init__(
        self,
        auth: AuthService,
        operations: OperationsStore,
        currency: str = "USD",
        refresh_interval: float = 60.0,
        prompt: Prompt = input,
        secret_prompt: Prompt = getpass.getpass,
        output: Output = print,
    ) -> None:
        self.auth = auth
        self.operations = operations
        self.panel = DashboardPanel(currency)
        self.refresh_interval = refresh_interval
        self._prompt = prompt
        self._secret_prompt = secret_prompt
        self._out = output
        self._refresh_task: asyncio.Task | None = None
        self._actions = {
            "dashboard": self.show_dashboard,
            "tables": self.show_tables,
            "inventory": self.show_low_stock,
            "users": self.register_form,
            "password": self.change_password_form,
            "logout": self.logout,
        }

    # ------------------------------------------------------------------
    # Input helpers
    # ------------------------------------------------------------------

    async def _ask(self, label: str) -> str:
        return (await asyncio.to_thread(self._prompt, label)).strip()

    async def _ask_secret(self, label: str) -> str:
        return await asyncio.to_thread(self._secret_prompt, label)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Run until the user quits from the login form or end of input."""
        try:
            if not await self._ensure_administrator():
                return
            while True:
                if not self.auth.is_logged_in():
                    if not await self.login_form():
                        return
                    self._start_refresh()
                entry = await self.choose()
                if entry is None:
                    continue
                if self.auth.session.is_session_expired():
                    self._out("Your session has expired. Please log in again.")
                    await self.logout()
                    continue
                self.auth.session.touch()
                await self.dispatch(entry)
        except EOFError:
            self._out("")
        finally:
            await self._stop_refresh()

    async def _ensure_administrator(self) -> bool:
        """Run first-run setup on an empty store. False if the store is unavailable."""
        try:
            if not self.auth.store.has_users():
                await self.setup_form()
        except PersistenceUnavailableError:
            logger.error("First-run setup failed", exc_info=True)
            self._out("The database is unavailable. Please try again later.")
            return False
        return True

    async def dispatch(self, entry: MenuEntry) -> None:
        action = self._actions.get(entry.key)
        if action is None:
            self._out(f"{entry.label} is not available in the console client.")
            return
        try:
            await action()
        except PersistenceUnavailableError:
            logger.error("Action %r failed", entry.key, exc_info=True)
            self._out("The database is unavailable. Please try again later.")

    async def choose(self) -> MenuEntry | None:
        entries = visible_entries(self.auth.session)
        user = self.auth.session.current_user()
        self._out("")
        self._out(f"-- Main menu ({user.username}, {user.role_name or 'no role'}) --")
        for number, entry in enumerate(entries, start=1):
            self._out(f"  {number}. {entry.label}")
        choice = await self._ask("Select an option: ")
        if not choice.isdigit() or not 1 <= int(choice) <= len(entries):
            self._out("Please enter one of the numbers shown.")
            return None
        return entries[int(choice) - 1]

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    async def login_form(self) -> bool:
        """Prompt until a login succeeds. Returns False if the user quits."""
        while True:
            self._out("")
            self._out("-- Restaurant Back Office: Login (q to quit) --")
            username = await self._ask("Username: ")
            if username.lower() == "q":
                return False
            password = await self._ask_secret("Password: ")
            if not username or not password:
                self._out("Please enter username and password.")
                continue
            try:
                user = self.auth.authenticate(username, password)
            except AuthError as exc:
                self._out(f"Login failed: {exc}")
                continue
            except PersistenceUnavailableError:
                logger.error("Login failed: store unavailable", exc_info=True)
                self._out("Login failed: the database is unavailable.")
                continue
            self._out(f"Welcome, {user.full_name or user.username}!")
            return True

    async def logout(self) -> None:
        await self._stop_refresh()
        self.auth.logout()
        self._out("You have been logged out.")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def _start_refresh(self) -> None:
        self._refresh_task = asyncio.create_task(
            refresh_loop(self.operations.dashboard_stats, self.panel.apply, self.refresh_interval)
        )

    async def _stop_refresh(self) -> None:
        if self._refresh_task is None:
            return
        task, self._refresh_task = self._refresh_task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.error("Dashboard refresh task failed", exc_info=True)

    async def show_dashboard(self) -> None:
        stats = await refresh_dashboard(self.operations.dashboard_stats, self.panel.apply)
        self._out("")
        self._out("-- Dashboard --")
        if stats is None:
            self._out("(live figures unavailable, showing the last values loaded)")
        for line in self.panel.render():
            self._out(line)

    async def show_tables(self) -> None:
        tables = await asyncio.to_thread(self.operations.list_tables)
        if not tables:
            self._out("No tables configured.")
            return
        for table in tables:
            location = f"  [{table.location}]" if table.location else ""
            self._out(f"  {table.table_number:<6} seats {table.capacity:<3} {table.status}{location}")

    async def show_low_stock(self) -> None:
        items = await asyncio.to_thread(self.operations.list_low_stock)
        if not items:
            self._out("All items are above their reorder level.")
            return
        self._out("Items at or below reorder level:")
        for item in items:
            self._out(f"  {item.name:<24} {item.quantity:g} {item.unit} (reorder at {item.reorder_level:g})")

    # ------------------------------------------------------------------
    # Account forms
    # ------------------------------------------------------------------

    async def _new_password(self) -> str | None:
        password = await self._ask_secret("New password: ")
        confirm = await self._ask_secret("Confirm password: ")
        if password != confirm:
            self._out("Passwords do not match.")
            return None
        strength = password_strength(password)
        self._out(f"Password strength: {strength}")
        if strength == WEAK:
            self._out("Consider a longer password mixing upper case, digits and symbols.")
        return password

    async def change_password_form(self) -> None:
        user = self.auth.current_user()
        current = await self._ask_secret("Current password: ")
        new_password = await self._new_password()
        if new_password is None:
            return
        if not new_password:
            self._out("Password is required.")
            return
        try:
            await asyncio.to_thread(self.auth.change_password, user.id, current, new_password)
        except AuthError as exc:
            self._out(f"Password not changed: {exc}")
            return
        self._out("Password changed.")

    async def _account_form(self, role_name: str | None) -> User | None:
        """Collect and validate a new account. Returns None if the form was rejected."""
        username = await self._ask("Username: ")
        email = await self._ask("Email: ")
        full_name = await self._ask("Full name: ")
        phone = await self._ask("Phone (optional): ")
        if role_name is None:
            roles = await asyncio.to_thread(self.auth.store.list_roles)
            self._out("Roles: " + ", ".join(r.name for r in roles))
            role_name = await self._ask("Role: ")
        password = await self._new_password()
        if password is None:
            return None

        errors = registration_errors(username, email, password, phone or None)
        role = await asyncio.to_thread(self.auth.store.get_role_by_name, role_name)
        if role is None:
            errors.append(f"Unknown role: {role_name}")
        if errors:
            for error in errors:
                self._out(f"  - {error}")
            return None

        user = User(
            username=username,
            email=email,
            full_name=full_name or None,
            phone=phone or None,
            role_id=role.id,
            role=role,
        )
        try:
            await asyncio.to_thread(self.auth.register, user, password)
        except AuthError as exc:
            self._out(f"Account not created: {exc}")
            return None
        return user

    async def register_form(self) -> None:
        self._out("-- New staff account --")
        user = await self._account_form(None)
        if user is not None:
            self._out(f"Created account {user.username!r} (id {user.id}).")

    async def setup_form(self) -> None:
        """First run: create the default roles and the first administrator."""
        self._out("No accounts exist yet. Create the administrator account.")
        await asyncio.to_thread(seed_roles, self.auth)
        while True:
            user = await self._account_form("admin")
            if user is not None:
                self._out(f"Administrator {user.username!r} created. Please log in.")
                return
