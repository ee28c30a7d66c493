import logging
import numpy as np
import matplotlib.pyplot as plt
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import pandas as pd
from pathlib import Path

from stablecoin_engine.src.engine import StablecoinEngine, create_in_memory_engine
from stablecoin_engine.src.errors import InsufficientBalanceError
from stablecoin_engine.src.math_utils import collateral_value_usd
from stablecoin_engine.src.settings import EngineSettings, configure_logging

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
PRICE_EXPONENT = -2  # simulated prices are quoted in cents
KEEPER = "keeper"
ADMIN = "admin"


@dataclass
class RiskParams:
    max_ltv_bps: int = 7000
    liquidation_ltv_bps: int = 8000
    liquidation_bonus_bps: int = 500
    min_health_factor_bps: int = 11000
    borrow_rate_bps: int = 1000
    supply_cap: int = 10**18


@dataclass
class SimulationParams:
    initial_price: float = 150.0
    annual_volatility: float = 0.8
    simulation_days: int = 90
    steps_per_day: int = 24  # hourly steps
    num_borrowers: int = 20
    collateral_per_borrower: int = 1_000_000
    min_target_ltv: float = 0.30
    random_seed: Optional[int] = None
    experiment_name: str = "default"
    risk_params: RiskParams = field(default_factory=RiskParams)


class SimulationClock:
    """Unix clock advanced by the simulation loop"""

    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def to_oracle_price(price: float) -> int:
    return max(1, int(round(price * 10 ** -PRICE_EXPONENT)))


class LiquidationSimulation:
    """
    Drives a StablecoinEngine along a random collateral price path.
    Borrowers open positions at random LTVs below max_ltv, and a keeper
    liquidates whatever crosses the liquidation LTV at each step.
    """

    def __init__(self, params: SimulationParams):
        self.params = params
        self.rng = np.random.default_rng(params.random_seed)
        self.clock = SimulationClock()
        # the loop moves the clock and the price together, so any quote is fresh
        self.settings = EngineSettings(max_price_age_seconds=0)
        self.engine: StablecoinEngine = create_in_memory_engine(
            config_key=f"simulation-{params.experiment_name}",
            clock=self.clock,
            settings=self.settings,
        )
        # collateral is valued in stablecoin base units, not whole dollars
        self.oracle_exponent = PRICE_EXPONENT + self.settings.stablecoin_decimals
        self.history: List[Dict] = []
        self.liquidations: List[Dict] = []
        self.failed_liquidations = 0

    def to_tokens(self, amount: int) -> float:
        """Base units to whole stablecoin"""
        return amount / 10 ** self.settings.stablecoin_decimals

    @property
    def step_seconds(self) -> int:
        return SECONDS_PER_DAY // self.params.steps_per_day

    def _set_price(self, price: float) -> None:
        self.engine.oracle.set_price(to_oracle_price(price), self.oracle_exponent)

    def open_positions(self) -> List[str]:
        """Open every borrower position plus a well collateralized keeper"""
        p = self.params
        risk = p.risk_params
        self.engine.initialize_config(
            ADMIN,
            max_ltv_bps=risk.max_ltv_bps,
            liquidation_ltv_bps=risk.liquidation_ltv_bps,
            liquidation_bonus_bps=risk.liquidation_bonus_bps,
            min_health_factor_bps=risk.min_health_factor_bps,
            borrow_rate_bps=risk.borrow_rate_bps,
            supply_cap=risk.supply_cap,
        )
        self._set_price(p.initial_price)
        price = to_oracle_price(p.initial_price)

        # the health factor floor caps the LTV a borrower can open at
        max_open_ltv = min(
            risk.max_ltv_bps,
            risk.liquidation_ltv_bps * 10_000 // risk.min_health_factor_bps,
        ) / 10_000
        target_ltvs = self.rng.uniform(p.min_target_ltv, max_open_ltv, size=p.num_borrowers)

        borrowers = []
        total_debt = 0
        for i, target_ltv in enumerate(target_ltvs):
            owner = f"borrower-{i}"
            value = collateral_value_usd(p.collateral_per_borrower, price, self.oracle_exponent)
            mint = value * int(target_ltv * 10_000) // 10_000
            self.engine.vault.fund(owner, p.collateral_per_borrower)
            self.engine.deposit(owner, p.collateral_per_borrower, mint)
            borrowers.append(owner)
            total_debt += mint

        # keeper borrows enough stablecoin to repay every borrower with interest
        keeper_mint = total_debt * 2
        keeper_collateral = p.collateral_per_borrower * p.num_borrowers * 20
        self.engine.vault.fund(KEEPER, keeper_collateral)
        self.engine.deposit(KEEPER, keeper_collateral, keeper_mint)
        logger.info("Opened %d borrower positions with %d total debt", len(borrowers), total_debt)
        return borrowers

    def liquidate_step(self, day: float) -> int:
        count = 0
        for assessment in self.engine.liquidatable_positions():
            if assessment.owner == KEEPER:
                continue
            try:
                result = self.engine.liquidate(KEEPER, assessment.owner)
            except InsufficientBalanceError:
                self.failed_liquidations += 1
                logger.warning("Keeper cannot cover the debt of %s", assessment.owner)
                continue
            count += 1
            self.liquidations.append(
                {
                    "time": day,
                    "owner": result.owner,
                    "ltv_bps": result.ltv_bps,
                    "debt_repaid": self.to_tokens(result.debt_repaid),
                    "collateral_seized": result.collateral_seized,
                    "collateral_returned": result.collateral_returned,
                }
            )
        return count

    def simulate(self) -> pd.DataFrame:
        p = self.params
        borrowers = self.open_positions()
        total_steps = p.simulation_days * p.steps_per_day
        dt = 1 / (365 * p.steps_per_day)
        current_price = p.initial_price

        for step in range(total_steps):
            # geometric brownian motion with zero drift
            shock = self.rng.normal(0, 1)
            current_price *= np.exp(-0.5 * p.annual_volatility**2 * dt + p.annual_volatility * np.sqrt(dt) * shock)

            self.clock.advance(self.step_seconds)
            self._set_price(current_price)
            day = (step + 1) / p.steps_per_day
            liquidated = self.liquidate_step(day)

            open_positions = [self.engine.position(owner) for owner in borrowers]
            open_positions = [position for position in open_positions if position.active]
            self.history.append(
                {
                    "time": day,
                    "price": current_price,
                    "open_positions": len(open_positions),
                    "outstanding_debt": self.to_tokens(sum(position.debt_shares for position in open_positions)),
                    "liquidations": liquidated,
                    "total_supply": self.to_tokens(self.engine.tokens.total_supply()),
                }
            )

        return self.results()

    def results(self) -> pd.DataFrame:
        return pd.DataFrame(self.history)

    def liquidation_log(self) -> pd.DataFrame:
        columns = ["time", "owner", "ltv_bps", "debt_repaid", "collateral_seized", "collateral_returned"]
        return pd.DataFrame(self.liquidations, columns=columns)

    def plot_results(self, output_dir: Optional[Path] = None) -> Path:
        output_dir = Path(output_dir or Path('research/results') / self.params.experiment_name)
        output_dir.mkdir(parents=True, exist_ok=True)
        df = self.results()
        liquidations = self.liquidation_log()

        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8))

        ax1.plot(df["time"], df["price"], label='Collateral Price')
        ax1.scatter(
            liquidations["time"],
            np.interp(liquidations["time"], df["time"], df["price"]),
            color='r',
            marker='x',
            label='Liquidations',
        )
        ax1.set_ylabel('Price (USD)')
        ax1.set_title('Collateral Price Over Time')
        ax1.legend()
        ax1.grid(True)

        ax2.plot(df["time"], df["open_positions"], label='Open Positions', color='orange')
        ax2.set_ylabel('Open Positions')
        ax2.set_xlabel('Time (days)')
        ax2.set_title('Open Borrower Positions Over Time')
        ax2.legend()
        ax2.grid(True)

        plt.tight_layout()

        plot_name = f"vol_{self.params.annual_volatility}_liq_ltv_{self.params.risk_params.liquidation_ltv_bps}"
        if self.params.random_seed is not None:
            plot_name += f"_seed_{self.params.random_seed}"

        path = output_dir / f"{plot_name}.png"
        plt.savefig(path)
        plt.close()
        return path


def main():
    configure_logging(logging.WARNING)
    params = SimulationParams(
        experiment_name="liquidation_run",
        random_seed=57,
    )
    sim = LiquidationSimulation(params)
    df = sim.simulate()
    print(df.describe())
    print(f"{len(sim.liquidations)} liquidations, {sim.failed_liquidations} failed")
    print(f"Plot saved to {sim.plot_results()}")


if __name__ == "__main__":
    main()
