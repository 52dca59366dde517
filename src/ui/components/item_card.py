"""
Inventory item and habit cards with inline edit / delete forms.
"""

import streamlit as st

from src.ui.api_client import APIClient, APIError

_INVENTORY_FIELDS = ("name", "quantity", "unit", "category", "location", "expireDate")
_HABIT_FIELDS = ("name", "type", "details", "frequency", "comment")


def _edit_form(key: str, item: dict, fields: tuple[str, ...]) -> dict | None:
    """Render text inputs for ``fields``; return the changed values on save."""
    with st.form(key=key):
        values = {
            field: st.text_input(field, value="" if item.get(field) is None else str(item[field]))
            for field in fields
        }
        if not st.form_submit_button("Save"):
            return None
    changed = {k: v for k, v in values.items() if v != ("" if item.get(k) is None else str(item[k]))}
    if "quantity" in changed:
        try:
            changed["quantity"] = float(changed["quantity"])
        except ValueError:
            st.error("Quantity must be a number")
            return None
    return changed


def render_inventory_item(item: dict, client: APIClient, editable: bool = True) -> None:
    """Render one inventory entry; editable cards get Edit and Delete controls."""
    item_id = item.get("id")
    with st.container(border=True):
        col1, col2, col3 = st.columns([4, 2, 2])
        with col1:
            st.markdown(f"**{item.get('name', '')}**")
            meta = " · ".join(
                str(item[k]) for k in ("category", "location") if item.get(k)
            )
            if meta:
                st.caption(meta)
        with col2:
            quantity = item.get("quantity")
            if quantity is not None:
                st.write(f"{quantity:g} {item.get('unit') or ''}")
        with col3:
            if item.get("expireDate"):
                st.caption(f"exp {item['expireDate']}")

        if not editable or item_id is None:
            return

        with st.expander("Edit"):
            changed = _edit_form(f"edit_item_{item_id}", item, _INVENTORY_FIELDS)
            if changed:
                try:
                    client.edit_item(item_id, changed)
                    st.rerun()
                except APIError as exc:
                    st.error(exc.message)
        if st.button("Delete", key=f"delete_item_{item_id}"):
            try:
                client.delete_item(item_id)
                st.rerun()
            except APIError as exc:
                st.error(exc.message)


def render_habit(habit: dict, client: APIClient, editable: bool = True) -> None:
    """Render one habit; editable cards get Edit and Delete controls."""
    name = habit.get("name", "")
    with st.container(border=True):
        st.markdown(f"**{name}**")
        meta = " · ".join(
            str(habit[k]) for k in ("type", "frequency", "details") if habit.get(k)
        )
        if meta:
            st.caption(meta)
        if habit.get("comment"):
            st.write(habit["comment"])

        if not editable or not name:
            return

        with st.expander("Edit"):
            changed = _edit_form(f"edit_habit_{name}", habit, _HABIT_FIELDS[1:])
            if changed:
                try:
                    client.edit_habit(name, changed)
                    st.rerun()
                except APIError as exc:
                    st.error(exc.message)
        if st.button("Delete", key=f"delete_habit_{name}"):
            try:
                client.delete_habit(name)
                st.rerun()
            except APIError as exc:
                st.error(exc.message)
