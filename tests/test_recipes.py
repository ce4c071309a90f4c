"""레시피 서비스 테스트."""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.schemas.inventory import RecipeCreate, RecipeLineInput
from misekitchen.services.recipe_service import recipe_service
from misekitchen.utils.exceptions import ConflictError, NotFoundError, ValidationError


def _recipe(ingredients, size: str = "M", lines: list[RecipeLineInput] | None = None) -> RecipeCreate:
    return RecipeCreate(
        name="Cuatro Quesos",
        size=size,
        ingredients=lines or [
            RecipeLineInput(ingredient_id=ingredients["masa"].id, quantity=1),
            RecipeLineInput(ingredient_id=ingredients["mozzarella"].id, quantity=45),
        ],
    )


class TestCreateRecipe:
    """레시피 생성."""

    async def test_lines_keep_order(self, db: AsyncSession, ingredients):
        created = await recipe_service.create_recipe(db, _recipe(ingredients))

        assert created.type == "pizza"
        assert [line.ingredient_name for line in created.ingredients] == ["Masa de pizza", "Mozzarella"]
        assert created.ingredients[1].unit == "g"

        fetched = await recipe_service.get_recipe(db, uuid.UUID(created.id))
        assert fetched == created

    async def test_same_name_other_size(self, db: AsyncSession, ingredients):
        await recipe_service.create_recipe(db, _recipe(ingredients, size="M"))
        await recipe_service.create_recipe(db, _recipe(ingredients, size="L"))

        names = [(r.name, r.size) for r in await recipe_service.list_recipes(db, "pizza")]
        assert sorted(names) == [("Cuatro Quesos", "L"), ("Cuatro Quesos", "M")]

    async def test_duplicate_recipe(self, db: AsyncSession, ingredients):
        await recipe_service.create_recipe(db, _recipe(ingredients))
        with pytest.raises(ConflictError) as exc_info:
            await recipe_service.create_recipe(db, _recipe(ingredients))
        assert exc_info.value.code == "recipe_exists"

    async def test_duplicate_line(self, db: AsyncSession, ingredients):
        line = RecipeLineInput(ingredient_id=ingredients["masa"].id, quantity=1)
        with pytest.raises(ValidationError) as exc_info:
            await recipe_service.create_recipe(db, _recipe(ingredients, lines=[line, line]))
        assert exc_info.value.code == "duplicate_ingredient"

    async def test_unknown_ingredient(self, db: AsyncSession, ingredients):
        missing = uuid.uuid4()
        line = RecipeLineInput(ingredient_id=missing, quantity=1)
        with pytest.raises(ValidationError) as exc_info:
            await recipe_service.create_recipe(db, _recipe(ingredients, lines=[line]))
        assert exc_info.value.extra["names"] == [str(missing)]

    async def test_unknown_recipe(self, db: AsyncSession):
        with pytest.raises(NotFoundError):
            await recipe_service.get_recipe(db, uuid.uuid4())
