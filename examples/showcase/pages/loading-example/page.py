import anyio

LOAD_DELAY = 0.2


async def get_data() -> dict:
    await anyio.sleep(LOAD_DELAY)
    return {"stats": {"users": 10000}}


async def page() -> str:
    data = await get_data()
    return (
        '<div class="p-4"><h1>Loading example</h1>'
        f'<p class="stats">Users: {data["stats"]["users"]}</p></div>'
    )
