"""레시피 서비스 — 판매 처리에 필요한 최소 레시피 CRUD.

Recipe Service — the thin recipe create/read surface that feeds sales.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.inventory import Recipe, RecipeIngredient
from misekitchen.repositories.ingredient_repository import ingredient_repository
from misekitchen.repositories.recipe_repository import recipe_repository
from misekitchen.schemas.inventory import RecipeCreate, RecipeLineResponse, RecipeResponse
from misekitchen.utils.exceptions import ConflictError, NotFoundError, ValidationError


class RecipeService:
    """레시피 비즈니스 로직 (Recipe business logic)."""

    def to_response(self, recipe: Recipe) -> RecipeResponse:
        """레시피 모델을 응답 스키마로 변환합니다 (Convert a Recipe with its lines)."""
        return RecipeResponse(
            id=str(recipe.id),
            name=recipe.name,
            type=recipe.type,
            size=recipe.size,
            active=recipe.active,
            ingredients=[
                RecipeLineResponse(
                    ingredient_id=str(line.ingredient_id),
                    ingredient_name=line.ingredient.name,
                    category=line.ingredient.category,
                    unit=line.ingredient.unit,
                    quantity=line.quantity,
                )
                for line in recipe.ingredients
            ],
        )

    async def list_recipes(
        self, db: AsyncSession, recipe_type: str | None = None, active: bool | None = None,
    ) -> list[RecipeResponse]:
        """레시피 목록 (Recipes ordered by name and size)."""
        recipes: list[Recipe] = await recipe_repository.list_filtered(db, recipe_type, active)
        return [self.to_response(r) for r in recipes]

    async def get_recipe(self, db: AsyncSession, recipe_id: UUID) -> RecipeResponse:
        """레시피 상세.

        Raises:
            NotFoundError: 레시피가 없을 때 (Recipe not found)
        """
        recipe: Recipe | None = await recipe_repository.get_by_id(db, recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe not found", code="recipe_not_found")
        return self.to_response(recipe)

    async def create_recipe(self, db: AsyncSession, data: RecipeCreate) -> RecipeResponse:
        """레시피를 생성합니다.

        Create a recipe with its ordered ingredient lines.

        Raises:
            ConflictError: 같은 이름/크기/유형 레시피가 있을 때 (Duplicate recipe)
            ValidationError: 재료 중복 또는 존재하지 않는 재료 (Duplicate or unknown ingredient)
        """
        if await recipe_repository.find(db, data.name, data.size, data.type) is not None:
            raise ConflictError("Recipe already exists", code="recipe_exists")

        ingredient_ids: list[UUID] = [line.ingredient_id for line in data.ingredients]
        if len(set(ingredient_ids)) != len(ingredient_ids):
            raise ValidationError("An ingredient appears twice in the recipe", code="duplicate_ingredient")

        known = await ingredient_repository.get_many(db, ingredient_ids)
        unknown: list[str] = [str(i) for i in ingredient_ids if i not in known]
        if unknown:
            raise ValidationError("Unknown ingredients", code="unknown_ingredients", names=unknown)

        recipe = Recipe(name=data.name, type=data.type, size=data.size, active=data.active)
        recipe.ingredients = [
            RecipeIngredient(ingredient=known[line.ingredient_id], quantity=line.quantity, position=index)
            for index, line in enumerate(data.ingredients)
        ]
        db.add(recipe)
        await db.flush()
        return self.to_response(recipe)


# 싱글턴 인스턴스 — Singleton instance
recipe_service: RecipeService = RecipeService()
