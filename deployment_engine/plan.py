"""The token + router deployment and its state bootstrap."""

from .models import DEPLOYER, Checkpoint, DeploymentPlan, DeploymentStep, StepKind, StepRef

TOKEN_NAME = "BlockDAG Test Token"
TOKEN_SYMBOL = "TEST"
TOKEN_DECIMALS = 18
MINT_AMOUNT = 1_000_000 * 10**18
LIQUIDITY_AMOUNT = 500_000 * 10**18

# View methods read back from each deployed contract by `verify`.
CONTRACT_VIEWS = {
    "TestToken": ("name", "symbol", "decimals"),
    "SimpleRouter": ("owner",),
}


def build_default_plan(
    mint_amount: int = MINT_AMOUNT,
    liquidity_amount: int = LIQUIDITY_AMOUNT,
) -> DeploymentPlan:
    if liquidity_amount > mint_amount:
        raise ValueError("Liquidity cannot exceed the minted amount.")

    steps = (
        DeploymentStep(
            name="TestToken",
            kind=StepKind.CREATE,
            contract="TestToken",
            args=(TOKEN_NAME, TOKEN_SYMBOL, TOKEN_DECIMALS, DEPLOYER),
        ),
        DeploymentStep(
            name="SimpleRouter",
            kind=StepKind.CREATE,
            contract="SimpleRouter",
            args=(DEPLOYER,),
        ),
        DeploymentStep(
            name="mint",
            kind=StepKind.CALL,
            target="TestToken",
            method="mint",
            args=(DEPLOYER, mint_amount),
        ),
        DeploymentStep(
            name="approve",
            kind=StepKind.CALL,
            target="TestToken",
            method="approve",
            args=(StepRef("SimpleRouter"), mint_amount),
        ),
        DeploymentStep(
            name="addLiquidity",
            kind=StepKind.CALL,
            target="SimpleRouter",
            method="addLiquidity",
            args=(StepRef("TestToken"), liquidity_amount),
        ),
    )
    checkpoints = (
        Checkpoint(after_step="TestToken", prompt="Continue with SimpleRouter deployment?"),
        Checkpoint(after_step="SimpleRouter", prompt="Continue with token minting and liquidity?"),
    )
    return DeploymentPlan(steps=steps, checkpoints=checkpoints)
