"""Physical constants shared by the built-in recipes (SI units)."""

GRAV = 9.80665            # gravitational acceleration, m s-2
RD = 287.05               # gas constant of dry air, J kg-1 K-1
RV = 461.5                # gas constant of water vapour, J kg-1 K-1
CP = 1005.0               # specific heat of dry air at constant pressure, J kg-1 K-1
P_ZERO = 100000.0         # reference pressure, Pa
KAPPA = 2.0 / 7.0         # R/cp for an ideal diatomic gas
RD_OVER_CP = RD / CP
C_VIRTUAL = RV / RD - 1.0 # virtual temperature coefficient
LCLR = 0.0065             # standard atmosphere lapse rate, K m-1
DEPS = 1.0e-16            # floor for a derived pressure, Pa
