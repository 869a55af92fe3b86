"""
EmployeeRegistry -- The enumerable, insertion-ordered employee list.

Stored under the ``registry`` key as a JSON list.  Appended on hire,
entry removed on remove; readers get a copy.
"""

from __future__ import annotations

from wagestream_kernel.services.store import KeyValueStore

REGISTRY_KEY = "registry"


class EmployeeRegistry:
    def __init__(self, store: KeyValueStore):
        self._store = store

    def list(self) -> list[str]:
        return list(self._store.get(REGISTRY_KEY) or [])

    def contains(self, employee_id: str) -> bool:
        return employee_id in self.list()

    def add(self, employee_id: str) -> None:
        employees = self.list()
        if employee_id in employees:
            return
        employees.append(employee_id)
        self._store.set(REGISTRY_KEY, employees)

    def remove(self, employee_id: str) -> None:
        employees = self.list()
        if employee_id not in employees:
            return
        employees.remove(employee_id)
        self._store.set(REGISTRY_KEY, employees)
