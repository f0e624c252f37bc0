"""CLI command implementations for Stockroom management.

Provides human-initiated catalog operations through a command-line interface.

This adapter maps CLI commands (list, show, add, edit, delete, categories)
to ItemRepositoryPort operations. It handles CLI-specific formatting and
error reporting.
"""

import dataclasses
import logging
from decimal import Decimal
from typing import Any

from stockroom.core.errors import StockroomError
from stockroom.core.models import Category, Item, ItemPage
from stockroom.core.ports import ItemRepositoryPort

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "item_name",
    "item_description",
    "item_price",
    "available_quantity",
    "category_id",
)


def item_to_dict(item: Item) -> dict[str, Any]:
    """Convert an Item to a JSON-serialisable dictionary."""
    return {
        "item_id": item.item_id,
        "item_name": item.item_name,
        "item_description": item.item_description,
        "item_price": str(item.item_price),
        "available_quantity": item.available_quantity,
        "category_id": item.category_id,
    }


def category_to_dict(category: Category) -> dict[str, Any]:
    """Convert a Category to a JSON-serialisable dictionary."""
    return {
        "category_id": category.category_id,
        "category_name": category.category_name,
    }


class ItemCommandHandler:
    """Handles CLI commands by delegating to ItemRepositoryPort.

    Validation, not-found and store errors are reported as error
    dictionaries. Anything else propagates to the caller.
    """

    def __init__(self, repository: ItemRepositoryPort):
        """Initialize the CLI command handler.

        Args:
            repository: ItemRepositoryPort implementation to execute commands.
        """
        self.repository = repository

    async def list_items(
        self, page: int = 1, output_format: str = "json"
    ) -> dict[str, Any]:
        """List one page of items.

        Args:
            page: 1-based page number.
            output_format: Output format ('json', 'text'). Default 'json'.

        Returns:
            Dictionary with the page contents or status/message on error.
        """
        if output_format not in ("json", "text"):
            return {
                "status": "error",
                "operation": "list",
                "message": f"Unsupported format: {output_format}",
            }

        try:
            item_page = await self.repository.get_items_page(page)
        except (ValueError, StockroomError) as e:
            logger.error(f"Failed to list items: {e}")
            return {"status": "error", "operation": "list", "message": str(e)}

        if output_format == "text":
            data: Any = self._format_page_as_text(item_page)
        else:
            data = [item_to_dict(item) for item in item_page.items]

        return {
            "status": "success",
            "operation": "list",
            "page": item_page.page_number,
            "total_pages": item_page.total_pages,
            "total_items": item_page.total_items,
            "data": data,
        }

    async def show_item(self, item_id: int) -> dict[str, Any]:
        """Show a single item."""
        try:
            item = await self.repository.get_item(item_id)
        except (ValueError, StockroomError) as e:
            logger.error(f"Failed to load item: {e}")
            return {
                "status": "error",
                "operation": "show",
                "item_id": item_id,
                "message": str(e),
            }

        if item is None:
            return {
                "status": "error",
                "operation": "show",
                "item_id": item_id,
                "message": f"Item {item_id} not found",
            }
        return {"status": "success", "operation": "show", "data": item_to_dict(item)}

    async def add_item(
        self,
        item_name: str,
        item_price: str | float,
        item_description: str = "",
        available_quantity: int = 0,
        category_id: int | None = None,
    ) -> dict[str, Any]:
        """Add a new item to the catalog.

        Returns:
            Dictionary with the persisted item, including its item_id.
        """
        try:
            item = Item(
                item_id=None,
                item_name=item_name,
                item_description=item_description,
                item_price=Decimal(str(item_price)),
                available_quantity=available_quantity,
                category_id=category_id,
            )
            added = await self.repository.add_item(item)
        except (ArithmeticError, ValueError, StockroomError) as e:
            logger.error(f"Failed to add item: {e}")
            return {"status": "error", "operation": "add", "message": str(e)}

        return {
            "status": "success",
            "operation": "add",
            "item_id": added.item_id,
            "message": f"Item {added.item_id} added",
            "data": item_to_dict(added),
        }

    async def edit_item(self, item_id: int, **changes: Any) -> dict[str, Any]:
        """Change some fields of an item.

        Fields not named in `changes` keep their stored values. Passing
        category_id=None clears the category.

        Args:
            item_id: Item to edit.
            **changes: New values keyed by field name (see EDITABLE_FIELDS).

        Returns:
            Dictionary with the item as stored after the edit.
        """
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            return {
                "status": "error",
                "operation": "edit",
                "item_id": item_id,
                "message": f"Unknown item fields: {', '.join(unknown)}",
            }

        try:
            current = await self.repository.get_item(item_id)
            if current is None:
                return {
                    "status": "error",
                    "operation": "edit",
                    "item_id": item_id,
                    "message": f"Item {item_id} not found",
                }
            if "item_price" in changes:
                changes["item_price"] = Decimal(str(changes["item_price"]))
            item = dataclasses.replace(current, **changes)
            edited = await self.repository.edit_item(item)
        except (ArithmeticError, ValueError, StockroomError) as e:
            logger.error(f"Failed to edit item: {e}")
            return {
                "status": "error",
                "operation": "edit",
                "item_id": item_id,
                "message": str(e),
            }

        return {
            "status": "success",
            "operation": "edit",
            "item_id": item_id,
            "message": f"Item {item_id} updated",
            "data": item_to_dict(edited),
        }

    async def delete_item(self, item_id: int) -> dict[str, Any]:
        """Remove one unit of an item."""
        try:
            existed = await self.repository.delete_item(item_id)
        except (ValueError, StockroomError) as e:
            logger.error(f"Failed to delete item: {e}")
            return {
                "status": "error",
                "operation": "delete",
                "item_id": item_id,
                "message": str(e),
            }

        if not existed:
            return {
                "status": "error",
                "operation": "delete",
                "item_id": item_id,
                "message": f"Item {item_id} not found",
            }
        return {
            "status": "success",
            "operation": "delete",
            "item_id": item_id,
            "message": f"One unit of item {item_id} deleted",
        }

    async def list_categories(self) -> dict[str, Any]:
        try:
            categories = await self.repository.get_all_categories()
        except StockroomError as e:
            logger.error(f"Failed to list categories: {e}")
            return {"status": "error", "operation": "categories", "message": str(e)}

        return {
            "status": "success",
            "operation": "categories",
            "data": [category_to_dict(c) for c in categories],
        }

    async def add_category(self, category_name: str) -> dict[str, Any]:
        try:
            added = await self.repository.add_category(
                Category(category_id=None, category_name=category_name)
            )
        except (ValueError, StockroomError) as e:
            logger.error(f"Failed to add category: {e}")
            return {"status": "error", "operation": "add_category", "message": str(e)}

        return {
            "status": "success",
            "operation": "add_category",
            "data": category_to_dict(added),
        }

    def _format_page_as_text(self, item_page: ItemPage) -> str:
        """Format a page of items as human-readable text.

        Args:
            item_page: Page to format.

        Returns:
            Formatted text string.
        """
        lines = [
            f"Page {item_page.page_number} of {max(item_page.total_pages, 1)} "
            f"({item_page.total_items} items)",
            "",
        ]
        if not item_page.items:
            lines.append("  (no items)")
        for item in item_page.items:
            lines.append(
                f"  #{item.item_id} {item.item_name} - {item.item_price} "
                f"({item.available_quantity} in stock)"
            )
            if item.item_description:
                lines.append(f"      {item.item_description}")
        return "\n".join(lines)


def _require(args: dict[str, Any], name: str) -> Any:
    if name not in args:
        raise ValueError(f"Missing required parameter: {name}")
    return args[name]


async def run_command(
    repository: ItemRepositoryPort,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run a CLI command.

    Entry point for executing CLI commands. Maps command names to handler methods.

    Args:
        repository: ItemRepositoryPort implementation.
        command: Command name ('list', 'show', 'add', 'edit', 'delete',
            'categories', 'add_category').
        args: Dictionary of command arguments.

    Returns:
        Dictionary with command result.

    Raises:
        ValueError: If command is not recognized or a required argument
            is missing.
    """
    handler = ItemCommandHandler(repository)

    if command == "list":
        return await handler.list_items(
            page=int(args.get("page", 1)),
            output_format=args.get("format", "json"),
        )

    elif command == "show":
        return await handler.show_item(int(_require(args, "item_id")))

    elif command == "add":
        return await handler.add_item(
            item_name=_require(args, "item_name"),
            item_price=_require(args, "item_price"),
            item_description=args.get("item_description", ""),
            available_quantity=int(args.get("available_quantity", 0)),
            category_id=args.get("category_id"),
        )

    elif command == "edit":
        changes = {key: value for key, value in args.items() if key != "item_id"}
        if "available_quantity" in changes:
            changes["available_quantity"] = int(changes["available_quantity"])
        return await handler.edit_item(int(_require(args, "item_id")), **changes)

    elif command == "delete":
        return await handler.delete_item(int(_require(args, "item_id")))

    elif command == "categories":
        return await handler.list_categories()

    elif command == "add_category":
        return await handler.add_category(_require(args, "category_name"))

    else:
        raise ValueError(f"Unknown command: {command}")
