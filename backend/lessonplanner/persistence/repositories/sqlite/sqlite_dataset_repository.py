"""SQLite implementation of DatasetRepository."""
from __future__ import annotations
import json
import sqlite3
from datetime import datetime, timezone
from typing import Dict, List, Optional

from lessonplanner.domain.planning.models import Activity, LessonPlan, Unit
from lessonplanner.persistence.db import get_connection
from lessonplanner.persistence.interfaces.dataset_repository import DatasetRepository


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False)


# ------------------------------------------------------------------
# Writers sharing the caller's connection; the caller commits
# ------------------------------------------------------------------
def _write_activities(conn: sqlite3.Connection, activities: List[Activity]) -> None:
    conn.execute("DELETE FROM activities")
    conn.executemany(
        "INSERT INTO activities (name, category, position, payload) VALUES (?, ?, ?, ?)",
        [(a.name, a.category, i, _dump(a.to_dict())) for i, a in enumerate(activities)],
    )


def _write_document(conn: sqlite3.Connection, class_name: str, kind: str, payload: dict) -> None:
    conn.execute(
        """
        INSERT INTO class_documents (class_name, kind, payload, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(class_name, kind) DO UPDATE SET
            payload    = excluded.payload,
            updated_at = excluded.updated_at
        """,
        (class_name, kind, _dump(payload), _now_iso()),
    )


def _write_lesson_plans(conn: sqlite3.Connection, plans: List[LessonPlan]) -> None:
    conn.execute("DELETE FROM lesson_plans")
    conn.executemany(
        """
        INSERT INTO lesson_plans (id, class_name, plan_date, position, payload, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [
            (p.id, p.class_name, p.date.isoformat(), i, _dump(p.to_dict()), p.updated_at or _now_iso())
            for i, p in enumerate(plans)
        ],
    )


def _write_units(conn: sqlite3.Connection, class_name: str, units: List[Unit]) -> None:
    conn.execute("DELETE FROM units WHERE class_name = ?", (class_name,))
    conn.executemany(
        "INSERT OR REPLACE INTO units (id, class_name, position, payload, updated_at) VALUES (?, ?, ?, ?, ?)",
        [
            (u.id, class_name, i, _dump(u.to_dict()), u.updated_at or _now_iso())
            for i, u in enumerate(units)
        ],
    )


class SqliteDatasetRepository(DatasetRepository):

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def list_activities(self) -> List[Activity]:
        conn = get_connection()
        rows = conn.execute("SELECT payload FROM activities ORDER BY position ASC, name ASC").fetchall()
        conn.close()
        return [Activity.from_dict(json.loads(r["payload"])) for r in rows]

    def replace_activities(self, activities: List[Activity]) -> None:
        conn = get_connection()
        _write_activities(conn, activities)
        conn.commit()
        conn.close()

    def save_activity(self, activity: Activity) -> None:
        conn = get_connection()
        conn.execute(
            """
            INSERT INTO activities (name, category, position, payload)
            VALUES (:name, :category, (SELECT COALESCE(MAX(position), -1) + 1 FROM activities), :payload)
            ON CONFLICT(name) DO UPDATE SET
                category = excluded.category,
                payload  = excluded.payload
            """,
            {"name": activity.name, "category": activity.category, "payload": _dump(activity.to_dict())},
        )
        conn.commit()
        conn.close()

    def delete_activity(self, name: str) -> bool:
        conn = get_connection()
        cur = conn.execute("DELETE FROM activities WHERE name = ?", (name,))
        conn.commit()
        conn.close()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Class documents
    # ------------------------------------------------------------------
    def _get_document(self, class_name: str, kind: str) -> Optional[dict]:
        conn = get_connection()
        row = conn.execute(
            "SELECT payload FROM class_documents WHERE class_name = ? AND kind = ?",
            (class_name, kind),
        ).fetchone()
        conn.close()
        return json.loads(row["payload"]) if row else None

    def _save_document(self, class_name: str, kind: str, payload: dict) -> None:
        conn = get_connection()
        _write_document(conn, class_name, kind, payload)
        conn.commit()
        conn.close()

    def get_lesson_data(self, class_name: str) -> Optional[dict]:
        return self._get_document(class_name, "lessons")

    def save_lesson_data(self, class_name: str, lesson_data: dict) -> None:
        self._save_document(class_name, "lessons", lesson_data)

    def get_eyfs(self, class_name: str) -> Optional[Dict[str, List[str]]]:
        return self._get_document(class_name, "eyfs")

    def save_eyfs(self, class_name: str, standards: Dict[str, List[str]]) -> None:
        self._save_document(class_name, "eyfs", standards)

    def list_document_classes(self, kind: str) -> List[str]:
        conn = get_connection()
        rows = conn.execute(
            "SELECT class_name FROM class_documents WHERE kind = ? ORDER BY class_name", (kind,)
        ).fetchall()
        conn.close()
        return [r["class_name"] for r in rows]

    # ------------------------------------------------------------------
    # Lesson plans
    # ------------------------------------------------------------------
    def list_lesson_plans(self, class_name: Optional[str] = None) -> List[LessonPlan]:
        conn = get_connection()
        if class_name is None:
            rows = conn.execute("SELECT payload FROM lesson_plans ORDER BY position ASC").fetchall()
        else:
            rows = conn.execute(
                "SELECT payload FROM lesson_plans WHERE class_name = ? ORDER BY position ASC",
                (class_name,),
            ).fetchall()
        conn.close()
        return [LessonPlan.from_dict(json.loads(r["payload"])) for r in rows]

    def replace_lesson_plans(self, plans: List[LessonPlan]) -> None:
        conn = get_connection()
        _write_lesson_plans(conn, plans)
        conn.commit()
        conn.close()

    def save_lesson_plan(self, plan: LessonPlan) -> None:
        conn = get_connection()
        conn.execute(
            """
            INSERT INTO lesson_plans (id, class_name, plan_date, position, payload, updated_at)
            VALUES (:id, :class_name, :plan_date,
                    (SELECT COALESCE(MAX(position), -1) + 1 FROM lesson_plans), :payload, :updated_at)
            ON CONFLICT(id) DO UPDATE SET
                class_name = excluded.class_name,
                plan_date  = excluded.plan_date,
                payload    = excluded.payload,
                updated_at = excluded.updated_at
            """,
            {
                "id": plan.id,
                "class_name": plan.class_name,
                "plan_date": plan.date.isoformat(),
                "payload": _dump(plan.to_dict()),
                "updated_at": plan.updated_at or _now_iso(),
            },
        )
        conn.commit()
        conn.close()

    def delete_lesson_plan(self, plan_id: str) -> bool:
        conn = get_connection()
        cur = conn.execute("DELETE FROM lesson_plans WHERE id = ?", (plan_id,))
        conn.commit()
        conn.close()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------
    def list_units(self, class_name: Optional[str] = None) -> Dict[str, List[Unit]]:
        conn = get_connection()
        if class_name is None:
            rows = conn.execute(
                "SELECT class_name, payload FROM units ORDER BY class_name ASC, position ASC"
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT class_name, payload FROM units WHERE class_name = ? ORDER BY position ASC",
                (class_name,),
            ).fetchall()
        conn.close()
        grouped: Dict[str, List[Unit]] = {}
        for r in rows:
            grouped.setdefault(r["class_name"], []).append(Unit.from_dict(json.loads(r["payload"])))
        return grouped

    def replace_units(self, class_name: str, units: List[Unit]) -> None:
        conn = get_connection()
        _write_units(conn, class_name, units)
        conn.commit()
        conn.close()

    def delete_unit(self, class_name: str, unit_id: str) -> bool:
        conn = get_connection()
        cur = conn.execute("DELETE FROM units WHERE class_name = ? AND id = ?", (class_name, unit_id))
        conn.commit()
        conn.close()
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Whole dataset
    # ------------------------------------------------------------------
    def replace_dataset(
        self,
        activities: Optional[List[Activity]] = None,
        lesson_plans: Optional[List[LessonPlan]] = None,
        lessons: Optional[Dict[str, dict]] = None,
        eyfs: Optional[Dict[str, Dict[str, List[str]]]] = None,
        units: Optional[Dict[str, List[Unit]]] = None,
    ) -> None:
        conn = get_connection()
        try:
            with conn:
                if activities is not None:
                    _write_activities(conn, activities)
                if lesson_plans is not None:
                    _write_lesson_plans(conn, lesson_plans)
                for class_name, lesson_data in (lessons or {}).items():
                    _write_document(conn, class_name, "lessons", lesson_data)
                for class_name, standards in (eyfs or {}).items():
                    _write_document(conn, class_name, "eyfs", standards)
                for class_name, class_units in (units or {}).items():
                    _write_units(conn, class_name, class_units)
        finally:
            conn.close()
