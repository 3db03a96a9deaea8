#!/usr/bin/env python3
"""LevelUp TUI: habits, tasks and XP in the terminal, powered by Textual."""

from __future__ import annotations

import logging
import sys

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.logging import TextualHandler
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Label, Static

from levelup import (
    LevelUpError,
    Services,
    build_services,
    compute_overview,
    get_tasks_with_computed_fields,
    is_completed_today,
    load_goals,
    load_habits,
    load_penalties,
    load_tasks,
    toggle_habit,
    toggle_task,
    workspace_root,
)
from levelup.log import configure_logging

logger = logging.getLogger(__name__)

REMINDER_POLL_SECONDS = 60


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 1fr;
    min-width: 30;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#habits-table, #tasks-table {
    height: 1fr;
}

#weekly-info {
    height: auto;
    padding: 1 2;
    margin: 1 0 0 0;
    border: tall $primary-background-darken-2;
}

#status-screen {
    padding: 1 2;
}

#status-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

#penalties-table {
    height: 1fr;
}
"""


def _bar(pct: float, width: int = 20) -> str:
    filled = int(round(pct / 100 * width))
    return "█" * filled + "░" * (width - filled)


# ── Screens ────────────────────────────────────────────────────


class StatusScreen(Vertical):
    """Status view: level, overview counts and the penalty log."""

    def __init__(self, services: Services, **kwargs) -> None:
        super().__init__(**kwargs)
        self.services = services

    def compose(self) -> ComposeResult:
        yield Label("Status", classes="section-title")
        yield Static(id="status-info")
        yield DataTable(id="penalties-table")

    def on_mount(self) -> None:
        svc = self.services
        lp = svc.engine.get_level_progress()
        penalties = load_penalties(svc.store)
        overview = compute_overview(
            load_habits(svc.store), load_tasks(svc.store), load_goals(svc.store), penalties, svc.clock.today()
        )

        info_parts = [
            f"Level {lp.current_level}  {_bar(lp.progress_percentage)}  {lp.progress_xp}/{lp.needed_xp} XP",
            f"Total: {lp.total_xp} XP   Today: {lp.daily_xp}   This week: {lp.weekly_xp}",
            f"Habits done today: {overview['habits']['completed']}/{overview['habits']['total']}",
            f"Tasks done: {overview['tasks']['completed']}/{overview['tasks']['total']}",
            f"Goals done: {overview['goals']['completed']}/{overview['goals']['total']}",
            f"Penalty points: {overview['penaltyPoints']}",
        ]
        best = overview["bestStreak"]
        if best:
            info_parts.append(f"Best streak: {best['name']} ({best['streak']} days)")
        self.query_one("#status-info", Static).update("\n".join(info_parts))

        table: DataTable = self.query_one("#penalties-table", DataTable)
        table.add_columns("Date", "Points", "Description")
        for p in sorted(penalties, key=lambda p: p.penalty_date or svc.clock.today(), reverse=True)[:30]:
            table.add_row(
                p.penalty_date.isoformat() if p.penalty_date else "?",
                str(p.points),
                p.description,
            )


# ── Main app ───────────────────────────────────────────────────


class LevelUpApp(App):
    """LevelUp: gamified habits and tasks."""

    TITLE = "LevelUp"
    CSS = CSS

    BINDINGS = [
        Binding("space", "toggle_selected", "Done/Undo"),
        Binding("w", "check_weekly", "Weekly"),
        Binding("s", "show_status", "Status"),
        Binding("r", "refresh", "Refresh"),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("dashboard")

    def __init__(self, services: Services | None = None) -> None:
        super().__init__()
        self.services = services or build_services()

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Habits", classes="section-title"),
                DataTable(id="habits-table", cursor_type="row"),
                id="left-pane",
            ),
            Vertical(
                Label("Tasks", classes="section-title"),
                DataTable(id="tasks-table", cursor_type="row"),
                Static(id="weekly-info"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#habits-table", DataTable).add_columns("", "Habit", "Streak", "Freq")
        self.query_one("#tasks-table", DataTable).add_columns("", "Task", "Deadline", "Days")
        self._load_data()
        self.set_interval(REMINDER_POLL_SECONDS, self._fire_reminders)

    def _load_data(self) -> None:
        """Reload habits, tasks, weekly status and the XP header."""
        svc = self.services
        today = svc.clock.today()

        habits_table = self.query_one("#habits-table", DataTable)
        habits_table.clear()
        for h in load_habits(svc.store):
            habits_table.add_row(
                "✔" if is_completed_today(h, today) else " ",
                h.name,
                f"🔥 {h.streak}" if h.streak else "",
                h.frequency,
                key=h.id,
            )

        tasks_table = self.query_one("#tasks-table", DataTable)
        tasks_table.clear()
        for t in get_tasks_with_computed_fields(load_tasks(svc.store), today):
            days = t.get("days_until_deadline")
            tasks_table.add_row(
                "✔" if t["completed"] else ("!" if t.get("overdue") else " "),
                t["name"],
                t["deadline"] or "",
                "" if days is None else str(days),
                key=t["id"],
            )

        status = svc.tracker.get_weekly_status()
        commitment = status["commitment"]
        if status["targetXP"] > 0:
            done = " ✔ bonus earned" if commitment["completed"] else ""
            weekly = (
                f"Week of {commitment['weekStartDate']}: {status['weeklyXP']}/{status['targetXP']} XP  "
                f"{_bar(status['progressPercentage'])}{done}"
            )
        else:
            weekly = f"No weekly commitment yet ({status['weeklyXP']} XP this week)"
        self.query_one("#weekly-info", Static).update(weekly)

        self._update_level_display()

    def _update_level_display(self) -> None:
        lp = self.services.engine.get_level_progress()
        self.sub_title = f"Lv {lp.current_level}  {lp.progress_xp}/{lp.needed_xp} XP  ⭐ {lp.daily_xp} today"

    # ── Actions ────────────────────────────────────────────────

    def action_toggle_selected(self) -> None:
        """Complete or undo the highlighted habit/task."""
        focused = self.focused
        if not isinstance(focused, DataTable) or focused.row_count == 0:
            return
        row_key, _ = focused.coordinate_to_cell_key(focused.cursor_coordinate)
        done = focused.get_row(row_key)[0] == "✔"
        kind = "habit" if focused.id == "habits-table" else "task"
        self._toggle(kind, str(row_key.value), not done)

    @work(thread=True)
    def _toggle(self, kind: str, item_id: str, completed: bool) -> None:
        svc = self.services
        try:
            if kind == "habit":
                item, result = toggle_habit(svc.store, item_id, completed, svc.engine, notifier=svc.notifier)
            else:
                item, result = toggle_task(svc.store, item_id, completed, svc.engine)
            weekly_done = svc.tracker.check_completion() if result.changed and completed else False
        except LevelUpError as e:
            logger.warning("Toggle of %s %s failed: %s", kind, item_id, e)
            self.call_from_thread(self.notify, e.message, title="Error", severity="error")
            return

        if result.changed:
            msg = f"{item.name}: {result.xp_delta:+d} XP"
            if result.streak_bonus:
                msg += f"  🔥 {item.streak}-day streak!"
            self.call_from_thread(self.notify, msg, title="XP", severity="information")
        if result.leveled_up:
            level = svc.engine.get_progress().level
            self.call_from_thread(self.notify, f"You reached level {level}!", title="Level up", severity="information")
        if weekly_done:
            self.call_from_thread(self.notify, "Weekly goal reached, +50 XP", title="Weekly goal", severity="information")
        self.call_from_thread(self._load_data)

    @work(thread=True)
    def action_check_weekly(self) -> None:
        try:
            completed = self.services.tracker.check_completion()
        except LevelUpError as e:
            self.call_from_thread(self.notify, e.message, title="Error", severity="error")
            return
        if completed:
            self.call_from_thread(self.notify, "Weekly goal reached, +50 XP", title="Weekly goal", severity="information")
            self.call_from_thread(self._load_data)
        else:
            status = self.services.tracker.get_weekly_status()
            self.call_from_thread(
                self.notify,
                f"{status['remainingXP']} XP to go this week",
                title="Weekly goal",
                severity="information",
            )

    def action_refresh(self) -> None:
        self._load_data()

    def action_show_status(self) -> None:
        main = self.query_one("#main-layout", Horizontal)
        for old in self.query(".overlay-screen"):
            old.remove()

        if self.current_view == "status":
            self.query_one("#left-pane").display = True
            self.query_one("#right-pane").display = True
            self.current_view = "dashboard"
            return

        self.query_one("#left-pane").display = False
        self.query_one("#right-pane").display = False
        main.mount(StatusScreen(self.services, id="status-screen", classes="overlay-screen"))
        self.current_view = "status"

    def action_quit_app(self) -> None:
        self.exit()

    @on(DataTable.RowSelected)
    def _on_row_selected(self, event: DataTable.RowSelected) -> None:
        self.action_toggle_selected()

    @work(thread=True)
    def _fire_reminders(self) -> None:
        for r in self.services.notifier.fire_due_reminders():
            self.call_from_thread(self.notify, f"Time for: {r.habit_name}", title="Reminder", severity="information")


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    configure_logging(handler=TextualHandler())
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set LEVELUP_ROOT or create the directory first.")
        sys.exit(1)

    services = build_services(root)
    profile = services.profile
    if profile.notifications_enabled:
        try:
            services.notifier.schedule_weekly_setup(profile.weekly_setup_day, profile.weekly_setup_time)
        except LevelUpError as e:
            logger.warning("Weekly setup reminder not scheduled: %s", e)

    app = LevelUpApp(services)
    app.run()


if __name__ == "__main__":
    main()
