# 북마크 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes()를 await로 호출한다.

from app.db.init import get_db

SAVED_RECIPES = "saved_recipes"

async def ensure_indexes():
    db = get_db()

    # 사용자당 같은 레시피는 한 번만 (upsert 키)
    await db[SAVED_RECIPES].create_index([("anon_id", 1), ("recipe_id", 1)], unique=True)
    # 목록은 최신순
    await db[SAVED_RECIPES].create_index([("anon_id", 1), ("created_at", -1)])
