"""
FastAPI server for the FinanZen web app.
Provides endpoints for form editing, summaries, the AI diagnosis, Google login
and saving analyses to Google Sheets.
"""
from typing import Any, List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from api.dependencies import get_access_token, get_auth, get_narrative_client, get_sheets_client
from finanzen import store
from finanzen.auth import Token
from finanzen.config import CORS_ORIGINS, DEFAULT_MONTHS_TO_FORECAST
from finanzen.exceptions import AuthError, InvalidFieldError, NarrativeError, SheetsError
from finanzen.models import Category, FinancialData, default_financial_data
from finanzen.narrative import request_diagnosis
from finanzen.processor import category_totals, project_income, projection_frame, summarize
from finanzen.sheets_client import load_analysis, save_analysis

app = FastAPI(title="FinanZen API", version="1.0.0")

# Enable CORS for the web front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Form inputs arrive as numbers or raw text; the store normalises both
Amount = Union[float, str, None]


class LineItemModel(BaseModel):
    id: int = 0
    description: Optional[str] = ""
    amount: Amount = 0


class DebtItemModel(LineItemModel):
    loan_amount: Amount = 0
    outstanding_balance: Amount = 0
    total_installments: Amount = 0
    monthly_interest_rate: Amount = 0
    annual_interest_rate: Amount = 0
    start_date: Optional[str] = ""
    end_date: Optional[str] = ""


class IncomeForecastModel(BaseModel):
    growth_rate: Amount = 0
    months_to_forecast: Amount = DEFAULT_MONTHS_TO_FORECAST


class FinancialDataModel(BaseModel):
    income: List[LineItemModel] = []
    expenses: List[LineItemModel] = []
    debts: List[DebtItemModel] = []
    income_forecast: IncomeForecastModel = IncomeForecastModel()

    def to_domain(self) -> FinancialData:
        return store.from_dict(self.model_dump())


class DataRequest(BaseModel):
    data: FinancialDataModel


class AddItemRequest(DataRequest):
    category: Category


class RemoveItemRequest(AddItemRequest):
    item_id: int


class UpdateItemRequest(RemoveItemRequest):
    field: str
    value: Any = None


class UpdateForecastRequest(DataRequest):
    field: str
    value: Any = None


class SaveRequest(DataRequest):
    diagnosis: str


@app.get("/api/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/financial-data/default")
def get_default_data():
    """Initial form state: one empty row per category."""
    return default_financial_data(DEFAULT_MONTHS_TO_FORECAST).to_dict()


@app.post("/api/items/add")
def add_item(request: AddItemRequest):
    return store.add_item(request.data.to_domain(), request.category).to_dict()


@app.post("/api/items/remove")
def remove_item(request: RemoveItemRequest):
    return store.remove_item(request.data.to_domain(), request.category, request.item_id).to_dict()


@app.post("/api/items/update")
def update_item(request: UpdateItemRequest):
    try:
        data = store.update_item(
            request.data.to_domain(), request.category, request.item_id, request.field, request.value
        )
    except InvalidFieldError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return data.to_dict()


@app.post("/api/forecast/update")
def update_forecast(request: UpdateForecastRequest):
    try:
        data = store.update_forecast(request.data.to_domain(), request.field, request.value)
    except InvalidFieldError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return data.to_dict()


@app.post("/api/summary")
def get_summary(request: DataRequest):
    """Totals, payment capacity and income projection, recomputed on every call."""
    data = request.data.to_domain()
    sums = category_totals(data)
    totals = summarize(data)
    projection = projection_frame(project_income(totals.total_income, data.income_forecast))

    return {
        "category_totals": {
            "income": sums.income,
            "expenses": sums.expenses,
            "debts": sums.debts,
        },
        "totals": {
            "total_income": totals.total_income,
            "total_expenses": totals.total_expenses,
            "payment_capacity": totals.payment_capacity,
        },
        "projection": [
            {
                "month_index": int(row['Month Index']),
                "label": row['Label'],
                "projected_income": float(row['Projected Income']),
            }
            for _, row in projection.iterrows()
        ],
    }


@app.post("/api/analyze")
async def analyze(request: DataRequest, narrative_client=Depends(get_narrative_client)):
    """Send the snapshot to the language model and return the markdown diagnosis."""
    data = request.data.to_domain()
    try:
        diagnosis = await request_diagnosis(data, narrative_client.complete)
    except NarrativeError as e:
        raise HTTPException(status_code=502, detail={"message": str(e), "kind": e.kind})

    return {
        "diagnosis": diagnosis.markdown,
        "totals": {
            "total_income": diagnosis.totals.total_income,
            "total_expenses": diagnosis.totals.total_expenses,
            "payment_capacity": diagnosis.totals.payment_capacity,
        },
        "data": data.to_dict(),
    }


@app.get("/api/auth/login")
def login(auth=Depends(get_auth)):
    try:
        url, state = auth.authorization_url()
    except AuthError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"authorization_url": url, "state": state}


@app.get("/api/auth/callback")
def auth_callback(code: str, state: str, auth=Depends(get_auth)):
    """Exchange the authorization code and return the token with the user's profile."""
    try:
        token = auth.request_access_token(code, state)
        profile = auth.fetch_user_profile(token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    return {
        "access_token": token.access_token,
        "expiry": token.expiry.isoformat() if token.expiry else None,
        "profile": {"name": profile.name, "email": profile.email, "picture": profile.picture},
    }


@app.post("/api/auth/logout")
def logout(token: Token = Depends(get_access_token), auth=Depends(get_auth)):
    try:
        auth.revoke(token)
    except AuthError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "logged_out"}


@app.post("/api/save")
def save(request: SaveRequest, client=Depends(get_sheets_client)):
    """Save the analysed snapshot and its diagnosis to a new spreadsheet."""
    try:
        saved = save_analysis(client, request.data.to_domain(), request.diagnosis)
    except SheetsError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"spreadsheet_id": saved.spreadsheet_id, "url": saved.url}


@app.get("/api/saved/{spreadsheet_id}")
def get_saved(spreadsheet_id: str, client=Depends(get_sheets_client)):
    try:
        data, diagnosis = load_analysis(client, spreadsheet_id)
    except SheetsError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"data": data.to_dict(), "diagnosis": diagnosis}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
