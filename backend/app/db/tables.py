# app/db/tables.py
# 레시피 저장소 테이블 정의 (SQLAlchemy Core)
# RECIPE_INGREDIENTS: INGREDIENTS 배열을 한 줄씩 펼친 보조 테이블 (부분일치 점수 계산용, 소문자로 저장)

from sqlalchemy import JSON, Column, ForeignKey, Integer, MetaData, String, Table, Text

metadata = MetaData()

recipes = Table(
    "RECIPES",
    metadata,
    Column("ID", Integer, primary_key=True, autoincrement=True),
    Column("TITLE", Text, nullable=False),
    Column("TITLE_KEY", Text, nullable=False),   # 검색용 소문자 제목 (sqlite lower()는 ASCII만)
    Column("INGREDIENTS", JSON, nullable=False),
    Column("STEPS", JSON, nullable=False),
    Column("MINUTES", Integer, nullable=False, default=0),
    Column("TIME_TO_MAKE", String(100), nullable=False),
    Column("CALORIES", Integer, nullable=False, default=0),
    Column("PROTEIN_G", Integer, nullable=False, default=0),
    Column("FAT_G", Integer, nullable=False, default=0),
    Column("CARBS_G", Integer, nullable=False, default=0),
    Column("TAGS", JSON, nullable=False),
    Column("N_INGREDIENTS", Integer, nullable=False, default=0),
    Column("N_STEPS", Integer, nullable=False, default=0),
)

recipe_ingredients = Table(
    "RECIPE_INGREDIENTS",
    metadata,
    Column("RECIPE_ID", Integer, ForeignKey("RECIPES.ID", ondelete="CASCADE"), nullable=False, index=True),
    Column("POSITION", Integer, nullable=False),
    Column("INGREDIENT", Text, nullable=False),
)

# 카드/검색 응답에 내보내는 컬럼
RECIPE_CARD_COLUMNS = (
    recipes.c.ID,
    recipes.c.TITLE,
    recipes.c.INGREDIENTS,
    recipes.c.STEPS,
    recipes.c.TIME_TO_MAKE,
    recipes.c.CALORIES,
    recipes.c.PROTEIN_G,
    recipes.c.FAT_G,
    recipes.c.CARBS_G,
)
