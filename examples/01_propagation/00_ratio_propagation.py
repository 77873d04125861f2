r"""
Propagating a Ratio
-------------------

Two cross-correlated soil properties, carbon and nitrogen content, are
known on a grid by their mean and standard deviation. We want to know how
uncertain their ratio is.

Both properties share a spherical correlogram with a range of 5 km but
have different nugget fractions. Their cross-correlation at the same cell
is 0.7.

Example
^^^^^^^
"""

import matplotlib.pyplot as plt
import numpy as np

import gsprop as gp

grid = gp.GridGeometry(20, 20, xmin=0.0, ymax=20000.0, cellsize=1000.0)

# carbon increases to the east
x = np.broadcast_to(grid.x, grid.shape)
carbon_mean = gp.GridField(1.5 + x / 20000.0, grid)
carbon = gp.UncertainVariable(
    "C",
    carbon_mean,
    0.3,
    gp.CorrelationModel("Sph", range=5000.0, nugget_fraction=0.4),
)
nitrogen = gp.UncertainVariable(
    "N",
    gp.GridField.full(grid, 0.15),
    0.02,
    gp.CorrelationModel("Sph", range=5000.0, nugget_fraction=0.6),
)
model = gp.JointUncertaintyModel.build(
    [carbon, nitrogen], [[1.0, 0.7], [0.7, 1.0]]
)

###############################################################################
# Every draw of the joint fields is passed to the derived quantity.


def ratio(real):
    return real["C"].values / real["N"].values


ens = gp.run(model, grid, n=500, derive=ratio, seed=20170519, workers=2)
summary = gp.summarize(ens)
prob = gp.cellwise_exceedance(ens, 15.0)

###############################################################################
# The number of cells above a ratio of 15 is a scalar statistic of the
# ensemble.

hot = gp.scalar_statistic(ens, gp.count_exceeding(15.0))
print(hot.describe())

###############################################################################

fig, ax = plt.subplots(1, 3, figsize=(12, 3.5))
extent = grid.extent
for axis, fld, title in zip(
    ax,
    [summary["mean"], summary["std"], prob],
    ["mean C/N", "standard deviation", "P(C/N > 15)"],
):
    img = axis.imshow(fld.masked(), extent=extent)
    axis.set_title(title)
    fig.colorbar(img, ax=axis)

plt.tight_layout()
plt.show()
