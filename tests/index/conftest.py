"""Shared fixtures for index tests."""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Generator
from itertools import count
from pathlib import Path

import pytest

LIB_RS = """\
use anchor_lang::prelude::*;

pub mod errors;
pub mod instructions;
pub mod state;

use instructions::*;

declare_id!("Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS");

#[program]
pub mod vault {
    use super::*;

    pub fn initialize(ctx: Context<Initialize>, bump: u8) -> Result<()> {
        process_initialize(ctx, bump)
    }

    pub fn deposit(ctx: Context<Deposit>, amount: u64) -> Result<()> {
        process_deposit(ctx, amount)
    }
}
"""

INSTRUCTIONS_RS = """\
use anchor_lang::prelude::*;

use crate::errors::VaultError;
use crate::state::Vault;

#[derive(Accounts)]
pub struct Initialize<'info> {
    #[account(
        init,
        payer = authority,
        space = 8 + Vault::LEN,
        seeds = [b"vault", authority.key().as_ref()],
        bump
    )]
    pub vault: Account<'info, Vault>,
    #[account(mut)]
    pub authority: Signer<'info>,
    pub system_program: Program<'info, System>,
}

#[derive(Accounts)]
pub struct Deposit<'info> {
    #[account(mut, has_one = authority)]
    pub vault: Account<'info, Vault>,
    pub authority: Signer<'info>,
}

pub fn process_initialize(ctx: Context<Initialize>, bump: u8) -> Result<()> {
    let vault = &mut ctx.accounts.vault;
    vault.authority = ctx.accounts.authority.key();
    vault.bump = bump;
    let _size = Vault::space();
    Ok(())
}

pub fn process_deposit(ctx: Context<Deposit>, amount: u64) -> Result<()> {
    require!(amount > 0, VaultError::ZeroAmount);
    let vault = &mut ctx.accounts.vault;
    vault.credit(amount)?;
    Ok(())
}
"""

STATE_RS = """\
use anchor_lang::prelude::*;

#[account]
pub struct Vault {
    pub authority: Pubkey,
    pub balance: u64,
    pub bump: u8,
}

impl Vault {
    pub const LEN: usize = 32 + 8 + 1;

    pub fn space() -> usize {
        8 + Self::LEN
    }

    pub fn credit(&mut self, amount: u64) -> Result<()> {
        let current = self.balance;
        let next = checked_add(current, amount)?;
        self.balance = next;
        Ok(())
    }
}

pub trait Describe {
    fn describe(&self) -> String;
}

impl Describe for Vault {
    fn describe(&self) -> String {
        format!("vault {{ balance: {} }}", self.balance)
    }
}

impl Default for Vault {
    fn default() -> Self {
        Vault { authority: Pubkey::default(), balance: 0, bump: 0 }
    }
}

pub fn checked_add(a: u64, b: u64) -> Result<u64> {
    a.checked_add(b).ok_or(error!(VaultError::Overflow))
}
"""

ERRORS_RS = """\
use anchor_lang::prelude::*;

#[error_code]
pub enum VaultError {
    #[msg("Amount must be positive")]
    ZeroAmount,
    #[msg("Arithmetic overflow")]
    Overflow,
}

pub enum Side {
    Bid,
    Ask,
}
"""

SAMPLE_PROGRAM: dict[str, str] = {
    "programs/vault/src/lib.rs": LIB_RS,
    "programs/vault/src/instructions.rs": INSTRUCTIONS_RS,
    "programs/vault/src/state.rs": STATE_RS,
    "programs/vault/src/errors.rs": ERRORS_RS,
}


def write_tree(root: Path, files: dict[str, str]) -> None:
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def anchor_workspace(temp_dir: Path) -> Path:
    """An Anchor workspace holding one small vault program."""
    workspace = temp_dir / "workspace"
    workspace.mkdir()
    (workspace / "Anchor.toml").write_text('[programs.localnet]\nvault = "Fg6P"\n')
    write_tree(workspace, SAMPLE_PROGRAM)
    return workspace


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """Deterministic id factory: id-1, id-2, ..."""
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def sample_program() -> dict[str, str]:
    """Repo-relative path -> source of the vault program."""
    return dict(SAMPLE_PROGRAM)


@pytest.fixture
def make_workspace(temp_dir: Path) -> Callable[[dict[str, str]], Path]:
    """Build a workspace from a ``{relative path: text}`` mapping."""

    def _make(files: dict[str, str]) -> Path:
        workspace = temp_dir / "custom"
        workspace.mkdir(exist_ok=True)
        (workspace / "Anchor.toml").write_text("")
        write_tree(workspace, files)
        return workspace

    return _make
