from fastapi import FastAPI
from mooncal.api.public import router as public_router

app = FastAPI(title="mooncal public api")
app.include_router(public_router)
