"""Attach issues to a GitHub Project (V2) board and set their schedule dates."""


class ProjectBoard:
    """A ProjectV2 board with lazily loaded ids, fields and items."""

    def __init__(
        self,
        client,
        owner: str,
        number: int,
        owner_type: str = "user",
        start_field: str = "Start Date",
        end_field: str = "End Date",
    ):
        self.client = client
        self.owner = owner
        self.number = number
        self.owner_type = owner_type
        self.start_field = start_field
        self.end_field = end_field
        self._project_id: str | None = None
        self._fields: dict[str, str] | None = None  # name -> field id
        self._items: dict[int, str] | None = None  # issue number -> item id

    @property
    def project_id(self) -> str:
        if self._project_id is None:
            self._project_id = self.client.get_project_id(self.owner, self.number, self.owner_type)
        return self._project_id

    @property
    def fields(self) -> dict[str, str]:
        if self._fields is None:
            self._fields = {f["name"]: f["id"] for f in self.client.list_project_fields(self.project_id)}
        return self._fields

    @property
    def items(self) -> dict[int, str]:
        if self._items is None:
            self._items = {i["number"]: i["id"] for i in self.client.list_project_items(self.project_id)}
        return self._items

    def ensure_date_field(self, name: str) -> str:
        """Field id for `name`, creating a DATE field on a fresh board."""
        if name not in self.fields:
            field = self.client.create_date_field(self.project_id, name)
            self.fields[name] = field["id"]
            print(f"    [+] Created project field '{name}'")
        return self.fields[name]

    def ensure_schedule_fields(self) -> tuple[str, str]:
        return self.ensure_date_field(self.start_field), self.ensure_date_field(self.end_field)

    def find_item(self, issue_number: int) -> str | None:
        return self.items.get(issue_number)

    def add_issue(self, issue_number: int) -> str:
        """Put an issue on the board and return its board item id."""
        node_id = self.client.get_issue_node_id(issue_number)
        item_id = self.client.add_project_item(self.project_id, node_id)
        self.items[issue_number] = item_id
        print(f"    [+] Added #{issue_number} to project {self.number}")
        return item_id

    def ensure_item(self, issue_number: int) -> str:
        """Board item id for the issue, adding the issue if it is missing."""
        item_id = self.find_item(issue_number)
        if item_id is None:
            item_id = self.add_issue(issue_number)
        return item_id

    def set_dates(self, issue_number: int, start_date: str, end_date: str) -> list[str]:
        """Set start/end dates on the issue's board item.

        Empty dates are left alone (never cleared). Issues that are not on
        the board are skipped with a warning. Returns the fields updated.
        """
        if not start_date and not end_date:
            return []

        item_id = self.find_item(issue_number)
        if item_id is None:
            print(f"    [!] #{issue_number} is not on project {self.number}, dates not set")
            return []

        start_id, end_id = self.ensure_schedule_fields()
        updated = []
        for name, field_id, value in [
            (self.start_field, start_id, start_date),
            (self.end_field, end_id, end_date),
        ]:
            if not value:
                continue
            self.client.set_date_field(self.project_id, item_id, field_id, value)
            updated.append(name)
        return updated
