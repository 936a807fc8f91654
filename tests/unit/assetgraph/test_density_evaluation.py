"""Tests for the density-function interpreter."""

import numpy as np
from assetgraph.evaluation.density import (
    evaluate_density_grid,
    evaluate_density_volume,
    find_density_root,
)
from assetgraph.graph import Graph, GraphEdge, GraphNode
from assetgraph.lowering import lower_to_graph
from assetgraph.policies import EvaluationPolicy


def constant(value):
    return {"Type": "Constant", "Value": value}


def grid_of(asset, resolution=4, range_min=0.0, range_max=8.0, y_level=0.0, **kwargs):
    graph = lower_to_graph(asset)
    return evaluate_density_grid(graph, resolution, range_min, range_max, y_level, **kwargs)


class TestSimpleNodes:
    """Tests for constants and coordinates."""

    def test_constant(self):
        result = grid_of(constant(2.5))
        assert result.values.shape == (4, 4)
        assert result.values.dtype == np.float32
        assert np.all(result.values == 2.5)
        assert result.min_value == 2.5
        assert result.max_value == 2.5
        assert result.root_id == "graph_1"

    def test_coordinate_x_varies_along_columns(self):
        result = grid_of({"Type": "CoordinateX"})
        np.testing.assert_array_equal(result.values[0], [0.0, 2.0, 4.0, 6.0])
        np.testing.assert_array_equal(result.values[:, 0], [0.0, 0.0, 0.0, 0.0])

    def test_coordinate_z_varies_along_rows(self):
        result = grid_of({"Type": "CoordinateZ"})
        np.testing.assert_array_equal(result.values[:, 3], [0.0, 2.0, 4.0, 6.0])

    def test_coordinate_y_is_slice_height(self):
        result = grid_of({"Type": "CoordinateY"}, y_level=64.0)
        assert np.all(result.values == 64.0)


class TestArithmetic:
    """Tests for arithmetic and combinator nodes."""

    def test_sum_of_inputs(self):
        result = grid_of({"Type": "Sum", "Inputs": [constant(1), constant(2)]})
        assert np.all(result.values == 3.0)

    def test_sum_with_legacy_ports(self):
        graph = Graph(
            [
                GraphNode(id="s", type="Sum", asset_type="Sum"),
                GraphNode(id="a", type="Constant", asset_type="Constant", fields={"Value": 1}),
                GraphNode(id="b", type="Constant", asset_type="Constant", fields={"Value": 4}),
            ],
            [
                GraphEdge(source="a", target="s", target_port="InputA"),
                GraphEdge(source="b", target="s", target_port="InputB"),
            ],
        )
        result = evaluate_density_grid(graph, 2, 0.0, 1.0, 0.0)
        assert np.all(result.values == 5.0)

    def test_weighted_sum(self):
        asset = {"Type": "WeightedSum", "Weights": [0.5, 2], "Inputs": [constant(2), constant(3)]}
        assert np.all(grid_of(asset).values == 7.0)

    def test_product(self):
        asset = {"Type": "Product", "Inputs": [constant(2), constant(-3)]}
        assert np.all(grid_of(asset).values == -6.0)

    def test_unary_functions(self):
        assert np.all(grid_of({"Type": "Negate", "Input": constant(2)}).values == -2.0)
        assert np.all(grid_of({"Type": "Abs", "Input": constant(-2)}).values == 2.0)
        assert np.all(grid_of({"Type": "Square", "Input": constant(-3)}).values == 9.0)
        assert np.all(grid_of({"Type": "Inverse", "Input": constant(0)}).values == 0.0)

    def test_clamp(self):
        asset = {"Type": "Clamp", "Min": 1, "Max": 4, "Input": {"Type": "CoordinateX"}}
        np.testing.assert_array_equal(grid_of(asset).values[0], [1.0, 2.0, 4.0, 4.0])

    def test_normalizer(self):
        asset = {
            "Type": "Normalizer",
            "SourceRange": {"Min": 0, "Max": 8},
            "TargetRange": {"Min": 0, "Max": 1},
            "Input": {"Type": "CoordinateX"},
        }
        np.testing.assert_allclose(grid_of(asset).values[0], [0.0, 0.25, 0.5, 0.75])

    def test_min_max_average(self):
        inputs = [constant(1), constant(5)]
        assert np.all(grid_of({"Type": "MinFunction", "Inputs": inputs}).values == 1.0)
        assert np.all(grid_of({"Type": "MaxFunction", "Inputs": inputs}).values == 5.0)
        assert np.all(grid_of({"Type": "AverageFunction", "Inputs": inputs}).values == 3.0)

    def test_blend_named_handles(self):
        asset = {"Type": "Blend", "Inputs": [constant(0), constant(10), constant(0.25)]}
        assert np.all(grid_of(asset).values == 2.5)

    def test_range_choice(self):
        asset = {
            "Type": "RangeChoice",
            "Inputs": [{"Type": "CoordinateX"}, constant(5), constant(7)],
            "Threshold": 3,
        }
        np.testing.assert_array_equal(grid_of(asset).values[0], [7.0, 7.0, 5.0, 5.0])

    def test_switch_selects_input(self):
        asset = {"Type": "Switch", "Selector": 1, "Inputs": [constant(1), constant(2)]}
        assert np.all(grid_of(asset).values == 2.0)

    def test_single_input_array_form(self):
        assert np.all(grid_of({"Type": "Negate", "Inputs": [constant(3)]}).values == -3.0)
        assert np.all(grid_of({"Type": "Floor", "Inputs": [constant(2.7)]}).values == 2.0)

    def test_conditional_array_form(self):
        asset = {"Type": "Conditional", "Inputs": [{"Type": "One"}, constant(5), constant(7)]}
        assert np.all(grid_of(asset).values == 5.0)

    def test_amplitude_and_offset(self):
        amplitude = {"Type": "Amplitude", "Inputs": [constant(3), constant(2)]}
        assert np.all(grid_of(amplitude).values == 6.0)
        offset = {"Type": "Offset", "Input": constant(1), "Offset": constant(2)}
        assert np.all(grid_of(offset).values == 3.0)

    def test_floor_and_ceiling(self):
        assert np.all(grid_of({"Type": "Floor", "Input": constant(-1.5)}).values == -2.0)
        assert np.all(grid_of({"Type": "Ceiling", "Input": constant(1.2)}).values == 2.0)


class TestCurves:
    """Tests for curve application."""

    def test_manual_curve(self):
        asset = {
            "Type": "CurveFunction",
            "Input": {"Type": "CoordinateX"},
            "Curve": {"Type": "Manual", "Points": [{"x": 0, "y": 0}, {"x": 8, "y": 16}]},
        }
        np.testing.assert_array_equal(grid_of(asset).values[0], [0.0, 4.0, 8.0, 12.0])

    def test_curve_clamps_outside_points(self):
        asset = {
            "Type": "CurveFunction",
            "Input": {"Type": "CoordinateX"},
            "Curve": {"Type": "Manual", "Points": [[2, 1], [4, 3]]},
        }
        np.testing.assert_array_equal(grid_of(asset).values[0], [1.0, 1.0, 3.0, 3.0])

    def test_missing_curve_is_identity(self):
        asset = {"Type": "CurveFunction", "Input": constant(3)}
        assert np.all(grid_of(asset).values == 3.0)


class TestFallbacks:
    """Tests for unsupported and unknown types."""

    def test_unsupported_type_is_zero(self):
        asset = {"Type": "HeightAboveSurface", "Input": constant(3)}
        assert np.all(grid_of(asset).values == 0.0)

    def test_unknown_type_forwards_input(self):
        asset = {"Type": "MysteryWrapper", "Input": constant(4)}
        assert np.all(grid_of(asset, root_id="graph_1").values == 4.0)

    def test_unknown_type_without_input(self):
        graph = Graph([GraphNode(id="m", type="Mystery")])
        result = evaluate_density_grid(graph, 2, 0.0, 1.0, 0.0, root_id="m")
        assert np.all(result.values == 0.0)

    def test_cycle_evaluates_to_zero(self):
        graph = Graph(
            [GraphNode(id="a", type="Negate"), GraphNode(id="b", type="Abs")],
            [
                GraphEdge(source="b", target="a", target_port="Input"),
                GraphEdge(source="a", target="b", target_port="Input"),
            ],
        )
        result = evaluate_density_grid(graph, 2, 0.0, 1.0, 0.0, root_id="a")
        assert np.all(result.values == 0.0)

    def test_no_density_root(self):
        graph = Graph([GraphNode(id="p", type="Position:List")])
        result = evaluate_density_grid(graph, 3, 0.0, 1.0, 0.0)
        assert result.root_id is None
        assert result.values.shape == (3, 3)
        assert np.all(result.values == 0.0)

    def test_resolution_capped(self):
        policy = EvaluationPolicy(max_grid_resolution=8)
        result = grid_of(constant(1), resolution=100, policy=policy)
        assert result.values.shape == (8, 8)


class TestFindDensityRoot:
    """Tests for the density root cascade."""

    def test_terrain_section_tag(self):
        graph = Graph([
            GraphNode(id="a", type="Constant"),
            GraphNode(id="b", type="Negate", section="Terrain"),
        ])
        assert find_density_root(graph).id == "b"

    def test_vector_constant_not_a_root(self):
        graph = Graph([GraphNode(id="v", type="Vector:Constant", asset_type="Constant")])
        assert find_density_root(graph) is None


class TestVolume:
    """Tests for 3D voxel evaluation."""

    def test_shape_and_levels(self):
        graph = lower_to_graph({"Type": "CoordinateY"})
        result = evaluate_density_volume(graph, 3, 0.0, 3.0, 0.0, 4.0, 4)
        assert result.values.shape == (4, 3, 3)
        np.testing.assert_array_equal(result.y_levels, [0.0, 1.0, 2.0, 3.0])
        for k in range(4):
            assert np.all(result.values[k] == float(k))

    def test_solid_mask(self):
        graph = lower_to_graph({"Type": "CoordinateY"})
        result = evaluate_density_volume(graph, 2, 0.0, 2.0, 0.0, 4.0, 4)
        mask = result.solid_mask(threshold=1.5)
        assert mask.dtype == bool
        assert not mask[:2].any()
        assert mask[2:].all()

    def test_horizontal_axes_match_grid(self):
        graph = lower_to_graph({"Type": "CoordinateX"})
        volume = evaluate_density_volume(graph, 4, 0.0, 8.0, 0.0, 2.0, 2)
        grid = evaluate_density_grid(graph, 4, 0.0, 8.0, 0.0)
        np.testing.assert_array_equal(volume.values[0], grid.values)


class TestNoise:
    """Tests for seeded noise nodes."""

    SIMPLEX = {"Type": "SimplexNoise2D", "Frequency": 0.37, "Seed": "hills"}

    def test_simplex_varies_and_stays_in_range(self):
        values = grid_of(self.SIMPLEX, resolution=16, range_max=32.0).values
        assert np.ptp(values) > 0.1
        assert np.all(np.abs(values) <= 1.0 + 1e-6)

    def test_same_seed_same_values(self):
        first = grid_of(self.SIMPLEX, resolution=16, range_max=32.0, seed=5)
        second = grid_of(self.SIMPLEX, resolution=16, range_max=32.0, seed=5)
        np.testing.assert_array_equal(first.values, second.values)

    def test_evaluation_seed_changes_values(self):
        first = grid_of(self.SIMPLEX, resolution=16, range_max=32.0, seed=1)
        second = grid_of(self.SIMPLEX, resolution=16, range_max=32.0, seed=2)
        assert not np.allclose(first.values, second.values)

    def test_seed_field_changes_values(self):
        other = dict(self.SIMPLEX, Seed="valleys")
        first = grid_of(self.SIMPLEX, resolution=16, range_max=32.0)
        second = grid_of(other, resolution=16, range_max=32.0)
        assert not np.allclose(first.values, second.values)

    def test_amplitude_scales(self):
        scaled = dict(self.SIMPLEX, Amplitude=3)
        base = grid_of(self.SIMPLEX, resolution=8, range_max=16.0).values
        np.testing.assert_allclose(
            grid_of(scaled, resolution=8, range_max=16.0).values, base * 3, rtol=1e-5, atol=1e-6
        )

    def test_2d_noise_ignores_height(self):
        low = grid_of(self.SIMPLEX, resolution=8, range_max=16.0, y_level=0.0)
        high = grid_of(self.SIMPLEX, resolution=8, range_max=16.0, y_level=40.0)
        np.testing.assert_array_equal(low.values, high.values)

    def test_fractal_defaults_to_four_octaves(self):
        fractal = {"Type": "FractalNoise2D", "Frequency": 0.37, "Seed": "hills"}
        single = dict(fractal, Octaves=1)
        values = grid_of(fractal, resolution=16, range_max=32.0).values
        assert np.all(np.abs(values) <= 1.875 + 1e-6)
        assert not np.allclose(values, grid_of(single, resolution=16, range_max=32.0).values)

    def test_ridge_noise_range(self):
        ridge = {"Type": "SimplexRidgeNoise2D", "Frequency": 0.37}
        values = grid_of(ridge, resolution=16, range_max=32.0).values
        assert values.min() >= -1.0 - 1e-6
        assert values.max() <= 1.0 + 1e-6

    def test_3d_noise_depends_on_height(self):
        graph = lower_to_graph({"Type": "SimplexNoise3D", "Frequency": 0.37})
        result = evaluate_density_volume(graph, 8, 0.0, 16.0, 0.0, 16.0, 4, seed=3)
        assert result.values.shape == (4, 8, 8)
        assert not np.allclose(result.values[1], result.values[2])

    def test_voronoi_regular_lattice(self):
        cells = {"Type": "VoronoiNoise2D", "Frequency": 1, "Jitter": 0}
        on_points = grid_of(cells, resolution=4, range_min=0.0, range_max=4.0)
        np.testing.assert_allclose(on_points.values, -1.0)
        centered = grid_of(cells, resolution=4, range_min=0.5, range_max=4.5)
        np.testing.assert_allclose(centered.values, np.sqrt(0.5) * 2 - 1, rtol=1e-6)

    def test_voronoi_distance_sub_at_cell_centers(self):
        cells = {"Type": "VoronoiNoise2D", "Frequency": 1, "Jitter": 0, "CellType": "Distance2Sub"}
        values = grid_of(cells, resolution=4, range_min=0.5, range_max=4.5).values
        np.testing.assert_allclose(values, -1.0, atol=1e-6)

    def test_voronoi_density_return(self):
        cells = {
            "Type": "VoronoiNoise2D",
            "Frequency": 1,
            "Jitter": 0,
            "ReturnType": "Density",
            "ReturnDensity": constant(0),
        }
        assert np.all(grid_of(cells).values == 0.0)

    def test_voronoi_seeded(self):
        cells = {"Type": "VoronoiNoise2D", "Frequency": 0.3}
        first = grid_of(cells, resolution=16, range_max=32.0, seed=1).values
        again = grid_of(cells, resolution=16, range_max=32.0, seed=1).values
        other = grid_of(cells, resolution=16, range_max=32.0, seed=9).values
        np.testing.assert_array_equal(first, again)
        assert not np.allclose(first, other)


class TestSmoothing:
    """Tests for smooth min/max family."""

    def test_smooth_min_blends_near_equal_inputs(self):
        asset = {"Type": "SmoothMin", "Smoothness": 1, "Inputs": [constant(2), constant(2)]}
        np.testing.assert_allclose(grid_of(asset).values, 1.75)

    def test_smooth_max_far_apart_is_hard_max(self):
        asset = {"Type": "SmoothMax", "Smoothness": 0.1, "Inputs": [constant(1), constant(3)]}
        np.testing.assert_allclose(grid_of(asset).values, 3.0)

    def test_smooth_min_without_inputs(self):
        assert np.all(grid_of({"Type": "SmoothMin"}).values == 0.0)

    def test_smooth_clamp(self):
        high = {"Type": "SmoothClamp", "Min": 0, "Max": 1, "Input": constant(5)}
        low = {"Type": "SmoothClamp", "Min": 0, "Max": 1, "Input": constant(-5)}
        np.testing.assert_allclose(grid_of(high).values, 1.0)
        np.testing.assert_allclose(grid_of(low).values, 0.0)

    def test_smooth_floor_and_ceiling(self):
        floor = {"Type": "SmoothFloor", "Threshold": 0, "Input": constant(-5)}
        ceiling = {"Type": "SmoothCeiling", "Threshold": 1, "Input": constant(5)}
        np.testing.assert_allclose(grid_of(floor).values, 0.0)
        np.testing.assert_allclose(grid_of(ceiling).values, 1.0)

    def test_zero_smoothness_is_hard(self):
        asset = {"Type": "SmoothMin", "Smoothness": 0, "Inputs": [constant(2), constant(2)]}
        np.testing.assert_allclose(grid_of(asset).values, 2.0)


class TestCoordinateWarps:
    """Tests for nodes that evaluate their input at moved coordinates."""

    def test_axis_overrides(self):
        y_override = {"Type": "YOverride", "OverrideY": 10, "Input": {"Type": "CoordinateY"}}
        x_override = {"Type": "XOverride", "OverrideX": 3, "Input": {"Type": "CoordinateX"}}
        z_override = {"Type": "ZOverride", "OverrideZ": -2, "Input": {"Type": "CoordinateZ"}}
        assert np.all(grid_of(y_override, y_level=64.0).values == 10.0)
        assert np.all(grid_of(x_override).values == 3.0)
        assert np.all(grid_of(z_override).values == -2.0)

    def test_y_override_legacy_field(self):
        asset = {"Type": "YOverride", "Y": 7, "Input": {"Type": "CoordinateY"}}
        assert np.all(grid_of(asset).values == 7.0)

    def test_y_sampled_rounds_half_up(self):
        asset = {"Type": "YSampled", "SampleDistance": 4, "Input": {"Type": "CoordinateY"}}
        assert np.all(grid_of(asset, y_level=5.0).values == 4.0)
        assert np.all(grid_of(asset, y_level=6.0).values == 8.0)

    def test_y_sampled_provider(self):
        asset = {"Type": "YSampled", "Inputs": [{"Type": "CoordinateY"}, constant(12)]}
        assert np.all(grid_of(asset).values == 12.0)

    def test_gradient_warp_2d(self):
        asset = {
            "Type": "GradientWarp",
            "WarpFactor": 2,
            "Is2D": True,
            "Input": {"Type": "CoordinateX"},
            "WarpSource": {"Type": "CoordinateX"},
        }
        np.testing.assert_allclose(grid_of(asset).values[0], [2.0, 4.0, 6.0, 8.0])

    def test_domain_warp_zero_amplitude_is_identity(self):
        asset = {"Type": "DomainWarp2D", "Amplitude": 0, "Input": {"Type": "CoordinateX"}}
        np.testing.assert_array_equal(grid_of(asset).values[0], [0.0, 2.0, 4.0, 6.0])

    def test_domain_warp_moves_samples(self):
        asset = {"Type": "DomainWarp2D", "Amplitude": 4, "Frequency": 0.37, "Input": {"Type": "CoordinateX"}}
        values = grid_of(asset, resolution=8, range_max=16.0).values
        plain = grid_of({"Type": "CoordinateX"}, resolution=8, range_max=16.0).values
        assert not np.allclose(values, plain)
        assert np.all(np.abs(values - plain) <= 4.0 + 1e-5)

    def test_twist_without_angle_is_identity(self):
        asset = {"Type": "PositionsTwist", "Angle": 0, "Input": {"Type": "CoordinateZ"}}
        np.testing.assert_array_equal(grid_of(asset).values[:, 0], [0.0, 2.0, 4.0, 6.0])

    def test_distance_without_curve(self):
        values = grid_of({"Type": "Distance"}).values
        np.testing.assert_allclose(values[0], [0.0, 2.0, 4.0, 6.0])
